"""This module contains physical constants used in the epcontam project."""

from pydantic import BaseModel, Field


class PhysicalConstants(BaseModel, frozen=True):
    """Physical constants for standard air and orifice flow."""

    AirDensity_kg_per_m3: float = Field(default=1.20410, ge=0, frozen=True)
    SqrtAirDensity: float = Field(default=1.097315, ge=0, frozen=True)
    AirViscosity_kg_per_m_s: float = Field(default=1.81625e-5, ge=0, frozen=True)
    TransitionReynoldsNumber: float = Field(default=30.0, ge=0, frozen=True)
    MinTransitionPressureDrop_Pa: float = Field(default=1.0e-10, gt=0, frozen=True)
    OrificeDischargeCoefficient: float = Field(default=0.6, gt=0, frozen=True)
    SecondsPerHour: float = Field(default=3600.0, gt=0, frozen=True)


physical_constants = PhysicalConstants()


class AssumedConstants(BaseModel, frozen=True):
    """Assumed values used when the building model does not supply them."""

    ZoneReferenceTemperature_K: float = Field(default=293.15, ge=0, frozen=True)
    # 1 scfm/ft2 expressed in m3/(s m2)
    SupplyFlowPerFloorArea_m3_per_s_m2: float = Field(
        default=0.00508, ge=0, frozen=True
    )
    ReturnFlowFraction: float = Field(default=0.9, ge=0, le=1, frozen=True)

    DefaultLeakageRate_m3_per_h: float = Field(default=27.1, ge=0, frozen=True)
    DefaultFlowExponent: float = Field(default=0.65, gt=0, le=1, frozen=True)
    DefaultReferencePressureDrop_Pa: float = Field(default=75.0, gt=0, frozen=True)
    InteriorLeakageMultiplier: float = Field(default=2.0, ge=0, frozen=True)

    WallWindProfile: int = Field(default=4, ge=0, frozen=True)
    RoofWindProfile: int = Field(default=5, ge=0, frozen=True)


assumed_constants = AssumedConstants()

__all__ = ["assumed_constants", "physical_constants"]
