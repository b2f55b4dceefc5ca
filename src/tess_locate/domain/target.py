"""Target and result models.

This module provides:
- TargetInput: A named sky position to locate
- TargetResult: The footprints found for one TargetInput
- FfiObservation: Sector/camera/CCD decoded from a TESS FFI observation id
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field

_FFI_OBS_ID = re.compile(r"^tess-s(?P<sector>\d{4})-(?P<camera>\d)-(?P<ccd>\d)")


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class TargetInput(FrozenModel):
    """A position to locate on the TESS FFI footprints.

    Serialized with the `ID` column name used by input and output files.
    """

    target_id: str = Field(alias="ID")
    ra: float = Field(allow_inf_nan=False, description="Right ascension (degrees)")
    dec: float = Field(ge=-90.0, le=90.0, allow_inf_nan=False, description="Declination (degrees)")


class TargetResult(FrozenModel):
    """Footprints containing one target, in footprint source order."""

    target_id: str = Field(alias="ID")
    ra: float
    dec: float
    observations: tuple[str, ...] = ()

    @classmethod
    def for_target(cls, target: TargetInput, observations: list[str]) -> TargetResult:
        return cls(
            target_id=target.target_id,
            ra=target.ra,
            dec=target.dec,
            observations=tuple(observations),
        )


class FfiObservation(FrozenModel):
    """Sector, camera and CCD of a TESS full-frame-image observation."""

    obs_id: str
    sector: int = Field(ge=0)
    camera: int = Field(ge=1, le=4)
    ccd: int = Field(ge=1, le=4)

    @classmethod
    def from_obs_id(cls, obs_id: str) -> FfiObservation:
        """Decode an id such as `tess-s0001-1-1`.

        Raises:
            ValueError: If the id does not follow the FFI naming scheme.
        """
        match = _FFI_OBS_ID.match(obs_id)
        if match is None:
            raise ValueError(f"Not a TESS FFI observation id: {obs_id!r}")
        return cls(
            obs_id=obs_id,
            sector=int(match["sector"]),
            camera=int(match["camera"]),
            ccd=int(match["ccd"]),
        )
