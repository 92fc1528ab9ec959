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

from nimbus.framework.base_components import GridComponent
from nimbus.utils.exceptions import ConfigurationError
from nimbus.utils.timex import Timer, to_seconds

if TYPE_CHECKING:
    from nimbus.domain.grid import SpectralGrid
    from nimbus.utils.typingx import TimeDelta


class RayleighDamping(GridComponent):
    """
    Relaxation of the state towards the reference state in the sponge
    layer, integrated with backward Euler over `n_cycles` sub-steps.

    Parameters
    ----------
    grid : SpectralGrid
        The grid, providing the damping rates and the reference state.
    n_cycles : `int`, optional
        Number of sub-steps. Defaults to 10.
    """

    def __init__(self, grid: SpectralGrid, n_cycles: int = 10) -> None:
        super().__init__(grid)

        if n_cycles < 1:
            raise ConfigurationError(f"At least one sub-step is required, got {n_cycles}.")
        self._n_cycles = n_cycles

        eqs = self.equation_set
        if eqs.kind == "primitive_nonhydrostatic":
            # the density is never damped
            if grid.is_cartesian_xz:
                self._components = (eqs.UIx, eqs.PIx, eqs.WIx)
            else:
                self._components = (eqs.UIx, eqs.VIx, eqs.PIx, eqs.WIx)
        else:
            self._components = tuple(range(eqs.components))

    @property
    def components(self) -> tuple[int, ...]:
        """Indices of the damped state components."""
        return self._components

    @property
    def n_cycles(self) -> int:
        return self._n_cycles

    def __call__(self, update: int, dt: TimeDelta) -> None:
        """
        Parameters
        ----------
        update : int
            Index of the data slot to damp, in place.
        dt : `float` or `datetime.timedelta`
            The time step.
        """
        Timer.start(label="rayleigh_friction")

        dt_sub = to_seconds(dt) / self._n_cycles

        for patch in self.grid.patches:
            ia, ib = patch.box.a_interior, patch.box.b_interior

            for c in self._components:
                location = self.grid.get_var_location(c)
                rate = patch.get_rayleigh_strength(location)[ia, ib]
                damped = rate != 0.0
                if not np.any(damped):
                    continue

                field = patch.get_data_state(update, location)[c, ia, ib]
                ref = patch.get_reference_state(location)[c, ia, ib][damped]
                w = 1.0 / (1.0 + dt_sub * rate[damped])

                value = field[damped]
                for _ in range(self._n_cycles):
                    value = w * value + (1.0 - w) * ref
                field[damped] = value

        Timer.stop()
