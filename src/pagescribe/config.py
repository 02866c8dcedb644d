import os
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "PAGESCRIBE_"


class ReconstructionConfig(BaseModel):
    """
    Thresholds for line and segment reconstruction.

    The pixel thresholds are tuned for phone photos of handwritten pages;
    scale them with image resolution.
    """

    model_config = ConfigDict(frozen=True)

    row_tolerance: float = Field(
        30.0,
        gt=0,
        description="Vertical distance (px) below which words are ordered by x when sorting.",
    )
    line_threshold: float = Field(
        40.0,
        gt=0,
        description="Vertical distance (px) from the running line mean below which a word joins the line.",
    )
    lines_per_segment: int = Field(
        3,
        ge=1,
        description="Maximum number of lines shown together for correction.",
    )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ReconstructionConfig":
        """
        Build a config from ``PAGESCRIBE_*`` environment variables.

        Unset variables keep their defaults; invalid values raise
        ``pydantic.ValidationError``.
        """
        environ = os.environ if environ is None else environ
        overrides: Dict[str, str] = {}
        for name in cls.model_fields:
            value = environ.get(ENV_PREFIX + name.upper())
            if value is not None and value.strip():
                overrides[name] = value.strip()
        return cls(**overrides)
