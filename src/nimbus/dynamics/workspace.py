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

from nimbus.framework.options import StorageOptions

if TYPE_CHECKING:
    from typing import Optional


class Workspace:
    """
    Scratch buffers for the per-element computations of the dynamical core.

    Buffers are shaped ``(N, N, nz)`` (model levels) or ``(N, N, nz + 1)``
    (interfaces), allocated once and reused by every stage call. Their
    content does not survive from one call to the next, and a single
    workspace must not be shared by stages running concurrently.

    Parameters
    ----------
    horizontal_order : int
        Number of collocation points per element and direction.
    nz : int
        Number of vertical levels.
    storage_options : `StorageOptions`, optional
        Storage-related options.
    """

    level_buffers = (
        # velocities and kinetic energy
        "con_ua",
        "con_ub",
        "cov_ua",
        "cov_ub",
        "k2",
        # horizontal fluxes
        "alpha_mass_flux",
        "beta_mass_flux",
        "alpha_pressure_flux",
        "beta_pressure_flux",
        # vertical flux of vertical momentum
        "sdot_w_node",
        # acoustic term of the vertical solve
        "dp_dtheta",
    )

    interface_buffers = (
        # interpolants
        "rho_redge",
        "ua_redge",
        "ub_redge",
        "theta_redge",
        # vertical fluxes of horizontal momentum
        "sdot_ua_redge",
        "sdot_ub_redge",
        # horizontal fluxes of vertical momentum
        "alpha_vertical_momentum_flux_redge",
        "beta_vertical_momentum_flux_redge",
        # tridiagonal bands and right-hand side
        "a",
        "b",
        "c",
        "d",
        # diffusion
        "buffer_state",
        "j_gradient_a",
        "j_gradient_b",
    )

    def __init__(
        self, horizontal_order: int, nz: int, storage_options: Optional[StorageOptions] = None
    ) -> None:
        self.horizontal_order = horizontal_order
        self.nz = nz
        self.storage_options = storage_options or StorageOptions()

        dtype = self.storage_options.dtype
        n = horizontal_order
        self._buffers = {}
        for name in self.level_buffers:
            self._buffers[name] = np.zeros((n, n, nz), dtype=dtype)
        for name in self.interface_buffers:
            self._buffers[name] = np.zeros((n, n, nz + 1), dtype=dtype)

        # solver status, one per column
        self.info = np.zeros((n, n), dtype=int)

    def __getattr__(self, name: str) -> np.ndarray:
        try:
            return self.__dict__["_buffers"][name]
        except KeyError:
            raise AttributeError(f"Workspace has no buffer '{name}'.")

    @property
    def shapes(self) -> dict[str, tuple[int, ...]]:
        return {name: buffer.shape for name, buffer in self._buffers.items()}

    def levels(self, nk: int, name: str) -> np.ndarray:
        """View of the first `nk` levels of an interface buffer."""
        return self._buffers[name][:, :, :nk]
