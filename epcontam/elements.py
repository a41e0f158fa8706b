"""Power-law airflow elements derived from an empirical leakage rate."""

from logging import getLogger

import numpy as np

from epcontam.constants import assumed_constants, physical_constants
from epcontam.exceptions import InvalidLeakageRate
from epcontam.prj import AirflowElement, NetworkData

logger = getLogger(__name__)


def laminar_coefficient(turbulent: float, exponent: float) -> float:
    """Compute the laminar flow coefficient matching a turbulent power-law fit.

    The laminar-turbulent transition is placed at a fixed Reynolds number for a
    circular opening with the same effective area as the turbulent fit.  The
    laminar coefficient is then chosen so that both regimes give the same flow at
    the transition pressure drop.

    Args:
        turbulent (float): The turbulent flow coefficient.
        exponent (float): The flow exponent.

    Returns:
        laminar (float): The laminar flow coefficient.
    """
    rho = physical_constants.AirDensity_kg_per_m3
    mu = physical_constants.AirViscosity_kg_per_m_s
    area = turbulent / (physical_constants.OrificeDischargeCoefficient * np.sqrt(2.0))
    diameter = np.sqrt(area)

    # Re = rho * V * D / mu and F = rho * V * A
    transition_flow = mu * physical_constants.TransitionReynoldsNumber * area / diameter
    # F = Ct * sqrt(rho) * dP^n
    transition_dp = (
        transition_flow / (turbulent * physical_constants.SqrtAirDensity)
    ) ** (1.0 / exponent)
    transition_dp = max(
        transition_dp, physical_constants.MinTransitionPressureDrop_Pa
    )
    # F = Clam * (rho / mu) * dP
    return float((mu * transition_flow) / (rho * transition_dp))


def derive_airflow_element(
    nr: int,
    name: str,
    flow: float,
    exponent: float = assumed_constants.DefaultFlowExponent,
    delta_p: float = assumed_constants.DefaultReferencePressureDrop_Pa,
) -> AirflowElement:
    """Fit a power-law airflow element to a single leakage test point.

    Args:
        nr (int): The index the element will take in the network.
        name (str): The element name.
        flow (float): The volumetric leakage rate at the test pressure [m3/h].
        exponent (float): The flow exponent.
        delta_p (float): The test pressure drop [Pa].

    Returns:
        element (AirflowElement): The fitted element.

    Raises:
        InvalidLeakageRate: If the leakage rate is not positive and finite.
    """
    if not np.isfinite(flow) or flow <= 0:
        raise InvalidLeakageRate(flow)
    mass_flow = (
        physical_constants.AirDensity_kg_per_m3
        * flow
        / physical_constants.SecondsPerHour
    )
    turbulent = mass_flow / (physical_constants.SqrtAirDensity * delta_p**exponent)
    return AirflowElement(
        nr=nr,
        name=name,
        description=f"{flow:g} m3/h at {delta_p:g} Pa",
        laminar=laminar_coefficient(turbulent, exponent),
        turbulent=turbulent,
        exponent=exponent,
        reference_pressure_drop=delta_p,
        reference_flow=mass_flow,
        pressure_units=0,
        # displayed in m3/h
        flow_units=1,
    )


class AirflowElementFactory:
    """Registers derived airflow elements in a network."""

    def __init__(self, network: NetworkData):
        """Bind the factory to the network that receives the elements.

        Args:
            network (NetworkData): The network to register elements in.
        """
        self.network = network

    def derive_element(
        self,
        name: str,
        flow: float,
        exponent: float = assumed_constants.DefaultFlowExponent,
        delta_p: float = assumed_constants.DefaultReferencePressureDrop_Pa,
    ) -> int:
        """Derive an element from a leakage rate and append it to the network.

        Args:
            name (str): The element name.
            flow (float): The volumetric leakage rate at the test pressure [m3/h].
            exponent (float): The flow exponent.
            delta_p (float): The test pressure drop [Pa].

        Returns:
            nr (int): The index of the new element.
        """
        nr = len(self.network.airflow_elements) + 1
        element = derive_airflow_element(nr, name, flow, exponent, delta_p)
        self.network.airflow_elements.append(element)
        logger.debug(
            f"Added airflow element {nr} '{name}': Ct={element.turbulent:g}, Cl={element.laminar:g}"
        )
        return nr
