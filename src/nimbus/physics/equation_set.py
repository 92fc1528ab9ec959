# -*- coding: utf-8 -*-
#
# Nimbus
#
# Copyright (c) 2018-2024, ETH Zurich
# All rights reserved.
#
# This file is part of the Nimbus project. Nimbus is free software:
# you can redistribute it and/or modify it under the terms of the
# GNU General Public License as published by the Free Software Foundation,
# either version 3 of the License, or any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.
#
# SPDX-License-Identifier: GPL-3.0-or-later
#
from __future__ import annotations
import numpy as np
from typing import TYPE_CHECKING

from nimbus.framework.base_components import PhysicalConstantsComponent
from nimbus.utils.constants import default_physical_constants
from nimbus.utils.exceptions import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import Optional

    from sympl import DataArray

    from nimbus.utils.typingx import NDArray


class EquationSet(PhysicalConstantsComponent):
    """
    The set of prognostic variables and the thermodynamics closing it.

    Parameters
    ----------
    kind : str
        Either:

            * 'advection';
            * 'shallow_water';
            * 'primitive_nonhydrostatic'.

    tracers : `int`, optional
        Number of passive tracers. Defaults to 0.
    physical_constants : `Mapping[str, sympl.DataArray]`, optional
        Values for the physical constants, overriding the defaults in
        :data:`nimbus.utils.constants.default_physical_constants`.
    """

    default_physical_constants = default_physical_constants

    # component indices
    UIx = 0
    VIx = 1
    PIx = 2
    WIx = 3
    RIx = 4

    component_counts = {"advection": 0, "shallow_water": 3, "primitive_nonhydrostatic": 5}

    def __init__(
        self,
        kind: str,
        tracers: int = 0,
        physical_constants: Optional[Mapping[str, DataArray]] = None,
    ) -> None:
        if kind not in self.component_counts:
            raise ConfigurationError(
                f"Unknown equation set '{kind}'. Available options are: "
                f"{', '.join(self.component_counts.keys())}."
            )
        if tracers < 0:
            raise ConfigurationError(f"The number of tracers must be non-negative, got {tracers}.")

        super().__init__(physical_constants)

        self._kind = kind
        self._tracers = tracers

        rd = self.rpc["gas_constant_of_dry_air"]
        cp = self.rpc["specific_heat_of_dry_air_at_constant_pressure"]
        self._gamma = cp / (cp - rd)

    @property
    def kind(self) -> str:
        return self._kind

    @property
    def components(self) -> int:
        return self.component_counts[self._kind]

    @property
    def tracers(self) -> int:
        return self._tracers

    @property
    def density_index(self) -> int:
        """Index of the component weighting the momenta."""
        return 2 if self._kind == "shallow_water" else self.RIx

    @property
    def g(self) -> float:
        return self.rpc["gravitational_acceleration"]

    @property
    def gamma(self) -> float:
        """Ratio of the specific heats."""
        return self._gamma

    def pressure_from_rho_theta(
        self, rho_theta: NDArray, out: Optional[NDArray] = None
    ) -> NDArray:
        """Ideal-gas pressure ``p0 * (R * rho_theta / p0) ** gamma``."""
        p0 = self.rpc["reference_air_pressure"]
        rd = self.rpc["gas_constant_of_dry_air"]
        out = np.multiply(rho_theta, rd / p0, out=out)
        np.power(out, self._gamma, out=out)
        out *= p0
        return out

    def dp_drho_theta(self, pressure: NDArray, rho_theta: NDArray) -> NDArray:
        """Derivative of the pressure with respect to the potential temperature density."""
        return self._gamma * pressure / rho_theta
