"""
Friction factor calculation for drilling-fluid flow in pipes and annuli.

This module implements the Colebrook-White equation for turbulent flow
friction factor calculation using Newton-Raphson iteration, together with the
Metzner-Reed Reynolds number used to select the flow regime of Newtonian and
non-Newtonian fluids.

References
----------
Colebrook, C. F. (1939): Turbulent flow in pipes
Moody, L. F. (1944): Friction factors for pipe flow
Metzner, A. B. & Reed, J. C. (1955): Flow of non-Newtonian fluids
"""

import numpy as np
import warnings

from .config import DEFAULT_CONFIG


def friction_factor_laminar(Re: float) -> float:
    """
    Calculate friction factor for laminar pipe flow.

    f = 64 / Re

    Parameters
    ----------
    Re : float
        Reynolds number [-]

    Returns
    -------
    float
        Darcy friction factor [-]
    """
    if Re <= 0:
        raise ValueError("Reynolds number must be positive")

    return 64.0 / Re


def friction_factor_turbulent(
    Re: float,
    epsilon: float,
    D: float,
    max_iter: int = 50,
    tol: float = 1e-6,
) -> float:
    """
    Calculate friction factor for turbulent flow using Colebrook-White equation.

    Solves the implicit equation using Newton-Raphson:

        1/√f = -2*log₁₀(ε/(3.7*D) + 2.51/(Re*√f))

    Parameters
    ----------
    Re : float
        Reynolds number [-]
    epsilon : float
        Absolute roughness [m]
    D : float
        Pipe (or hydraulic) diameter [m]
    max_iter : int, optional
        Maximum iterations for Newton-Raphson (default: 50)
    tol : float, optional
        Convergence tolerance (default: 1e-6)

    Returns
    -------
    float
        Darcy friction factor [-]

    Notes
    -----
    For initialization, uses Swamee-Jain approximation:
        f ≈ 0.25 / [log₁₀(ε/(3.7*D) + 5.74/Re^0.9)]²
    """
    if Re <= 0:
        raise ValueError("Reynolds number must be positive")
    if D <= 0:
        raise ValueError("Diameter must be positive")
    if epsilon < 0:
        raise ValueError("Roughness must be non-negative")

    eps_D = epsilon / D

    if eps_D < 1e-6:
        # Prandtl-von Karman smooth pipe: 1/√f = 2.0*log10(Re*√f) - 0.8
        f = 0.316 / (Re ** 0.25)
        for _ in range(max_iter):
            f_new = 1.0 / (2.0 * np.log10(Re * np.sqrt(f)) - 0.8) ** 2
            if abs(f_new - f) < tol:
                return float(f_new)
            f = f_new
        return float(f)

    log_term = np.log10(eps_D / 3.7 + 5.74 / (Re ** 0.9))
    f = 0.25 / (log_term ** 2)

    for _ in range(max_iter):
        term1 = eps_D / 3.7
        term2 = 2.51 / (Re * np.sqrt(f))
        F = 1.0 / np.sqrt(f) + 2.0 * np.log10(term1 + term2)

        dF_df = -0.5 * (f ** (-1.5))
        dF_df += (2.0 / np.log(10)) * term2 * (-0.5 / f) / (term1 + term2)

        f_new = max(f - F / dF_df, 1e-6)

        if abs(f_new - f) < tol:
            return float(f_new)

        f = f_new

    warnings.warn(
        f"Newton-Raphson did not converge after {max_iter} iterations. "
        f"Returning last value: f={f:.6f}",
        RuntimeWarning
    )
    return float(f)


def colebrook_white(
    Re: float,
    epsilon: float,
    D: float,
    transition_range: tuple = (DEFAULT_CONFIG.LAMINAR_RE, DEFAULT_CONFIG.TRANSITION_RE),
) -> float:
    """
    Calculate friction factor using appropriate regime.

    Automatically selects between laminar, transitional, and turbulent flow.

    Parameters
    ----------
    Re : float
        Reynolds number [-]
    epsilon : float
        Absolute roughness [m]
    D : float
        Pipe (or hydraulic) diameter [m]
    transition_range : tuple of float, optional
        (Re_lower, Re_upper) for transition regime (default: (2100, 4000))

    Returns
    -------
    float
        Darcy friction factor [-]

    Notes
    -----
    - Re < Re_lower: Laminar flow (f = 64/Re)
    - Re_lower <= Re <= Re_upper: Transition regime (linear interpolation)
    - Re > Re_upper: Turbulent flow (Colebrook-White)
    """
    Re_lower, Re_upper = transition_range

    if Re < Re_lower:
        return friction_factor_laminar(Re)

    elif Re > Re_upper:
        return friction_factor_turbulent(Re, epsilon, D)

    else:
        f_lam = friction_factor_laminar(Re_lower)
        f_turb = friction_factor_turbulent(Re_upper, epsilon, D)

        alpha = (Re - Re_lower) / (Re_upper - Re_lower)
        return f_lam * (1 - alpha) + f_turb * alpha


def generalized_reynolds_number(
    rho: float,
    v: float,
    tau_wall: float,
    geometry_factor: float = 8.0,
) -> float:
    """
    Metzner-Reed generalized Reynolds number from the wall shear stress.

    Re_g = c * ρ*v² / τ_w

    With c = 8 in a pipe this equals ρvD/μ for a Newtonian fluid; c = 12 is
    the slot approximation of a concentric annulus.

    Parameters
    ----------
    rho : float
        Fluid density [kg/m³]
    v : float
        Mean velocity [m/s]
    tau_wall : float
        Wall shear stress [Pa]
    geometry_factor : float, optional
        8 for pipe flow, 12 for annular flow (default: 8)

    Returns
    -------
    float
        Generalized Reynolds number [-]; 0 when τ_w <= 0
    """
    if tau_wall <= 0:
        return 0.0
    return geometry_factor * rho * v ** 2 / tau_wall


def pressure_drop_darcy_weisbach(
    f: float,
    L: float,
    D: float,
    rho: float,
    v: float,
) -> float:
    """
    Calculate pressure drop using Darcy-Weisbach equation.

    ΔP = f * (L/D) * (ρ*v²/2)

    Parameters
    ----------
    f : float
        Darcy friction factor [-]
    L : float
        Length [m]
    D : float
        Pipe (or hydraulic) diameter [m]
    rho : float
        Fluid density [kg/m³]
    v : float
        Flow velocity [m/s]

    Returns
    -------
    float
        Pressure drop [Pa]
    """
    return f * (L / D) * (rho * v**2 / 2.0)
