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

from nimbus.domain.grid import DataLocation, DataType
from nimbus.dynamics.tridiagonal import TridiagonalSolver
from nimbus.framework.base_components import StageComponent
from nimbus.utils.exceptions import ConfigurationError, NumericalFailureError
from nimbus.utils.timex import Timer, to_seconds

if TYPE_CHECKING:
    from typing import Union

    from nimbus.domain.grid import GridPatch, SpectralGrid
    from nimbus.dynamics.workspace import Workspace
    from nimbus.utils.typingx import TimeDelta


class VerticalImplicitStage(StageComponent):
    """
    Implicit part of the horizontally-explicit vertically-implicit splitting.

    The vertically propagating acoustic and gravity modes are integrated
    implicitly by solving, in each column, a tridiagonal system for the
    vertical momentum on the interfaces. The vertical momentum is forced to
    vanish at the ground and at the model top. The density and the potential
    temperature density are then advanced by the divergence of the new
    vertical fluxes.

    Parameters
    ----------
    grid : SpectralGrid
        The grid.
    workspace : Workspace
        The scratch buffers, possibly shared with other stages.
    tridiagonal_solver : `str` or `TridiagonalSolver`, optional
        The tridiagonal backend, or its registered name. Defaults to 'thomas'.
    """

    def __init__(
        self,
        grid: SpectralGrid,
        workspace: Workspace,
        tridiagonal_solver: Union[str, TridiagonalSolver] = "thomas",
    ) -> None:
        super().__init__(grid, workspace)

        if self.equation_set.kind != "primitive_nonhydrostatic":
            raise ConfigurationError(
                "The implicit stage requires the primitive non-hydrostatic equations, "
                f"got '{self.equation_set.kind}'."
            )

        if isinstance(tridiagonal_solver, TridiagonalSolver):
            self._solver = tridiagonal_solver
        else:
            self._solver = TridiagonalSolver.factory(tridiagonal_solver)

    @property
    def tridiagonal_solver(self) -> TridiagonalSolver:
        return self._solver

    def __call__(self, initial: int, update: int, dt: TimeDelta) -> None:
        """
        Parameters
        ----------
        initial : int
            Index of the data slot holding the state the system is built from.
        update : int
            Index of the data slot receiving the increments.
        dt : `float` or `datetime.timedelta`
            The time step.

        Raises
        ------
        NumericalFailureError :
            If the tridiagonal solve fails in any column.
        """
        Timer.start(label="step_implicit")

        dt = to_seconds(dt)

        for n, patch in enumerate(self.grid.patches):
            for a, b, sa, sb in patch.box.elements():
                try:
                    self._solve_element(patch, sa, sb, initial, update, dt)
                except NumericalFailureError as err:
                    Timer.stop()
                    raise NumericalFailureError(
                        err.info, patch=n, element=(a, b), column=err.column
                    ) from None

        self.grid.apply_dss(update, DataType.STATE)

        Timer.stop()

    def _solve_element(
        self, patch: GridPatch, sa: slice, sb: slice, initial: int, update: int, dt: float
    ) -> None:
        eqs = self.equation_set
        pix, wix, rix = eqs.PIx, eqs.WIx, eqs.RIx
        ws = self.workspace
        nz = self.grid.nz
        g = eqs.g

        init_node = patch.get_data_state(initial, DataLocation.NODE)
        init_redge = patch.get_data_state(initial, DataLocation.REDGE)
        upd_node = patch.get_data_state(update, DataLocation.NODE)
        upd_redge = patch.get_data_state(update, DataLocation.REDGE)

        rho = init_node[rix, sa, sb]
        rho_theta = init_node[pix, sa, sb]
        rho_w = init_redge[wix, sa, sb]
        zn = patch.z_levels[sa, sb]
        zi = patch.z_interfaces[sa, sb]

        # equation of state
        pressure = patch.data_pressure[sa, sb]
        eqs.pressure_from_rho_theta(rho_theta, out=pressure)
        dpdt = ws.dp_dtheta
        dpdt[...] = eqs.dp_drho_theta(pressure, rho_theta)

        # density and potential temperature on the interfaces
        k = slice(1, nz)
        rho_i = ws.rho_redge
        theta_i = ws.theta_redge
        rho_i[..., k] = 0.5 * (rho[..., :-1] + rho[..., 1:])
        theta_i[..., k] = 0.5 * (rho_theta[..., :-1] + rho_theta[..., 1:]) / rho_i[..., k]
        rho_i[..., 0] = rho[..., 0]
        rho_i[..., nz] = rho[..., -1]
        theta_i[..., 0] = rho_theta[..., 0] / rho[..., 0]
        theta_i[..., nz] = rho_theta[..., -1] / rho[..., -1]

        # tridiagonal bands; rows 0 and nz are identity rows with zero right-hand side
        a, b, c, d = ws.a, ws.b, ws.c, ws.d
        a[..., 0] = 0.0
        a[..., nz - 1] = 0.0
        a[..., nz] = 0.0
        b[..., 0] = 1.0
        b[..., nz] = 1.0
        c[..., 0] = 0.0
        c[..., nz] = 0.0
        d[..., 0] = 0.0
        d[..., nz] = 0.0

        dt2 = dt * dt
        inv_dz = 1.0 / (zi[..., 1:] - zi[..., :-1])
        inv_dzk = inv_dz[..., 1:]
        inv_dzkm = inv_dz[..., :-1]
        inv_dz_hat = 1.0 / (zn[..., 1:] - zn[..., :-1])
        dpdt_k = dpdt[..., 1:]
        dpdt_km = dpdt[..., :-1]

        a[..., 0 : nz - 1] = (
            -dt2 * inv_dzkm * (inv_dz_hat * dpdt_km * theta_i[..., 0 : nz - 1] - 0.5 * g)
        )
        b[..., k] = 1.0 + dt2 * (
            inv_dz_hat * theta_i[..., k] * (dpdt_k * inv_dzk + dpdt_km * inv_dzkm)
            + 0.5 * g * (inv_dzk - inv_dzkm)
        )
        c[..., k] = -dt2 * inv_dzk * (inv_dz_hat * dpdt_k * theta_i[..., 2 : nz + 1] + 0.5 * g)

        dz_p = inv_dz_hat * (pressure[..., 1:] - pressure[..., :-1])
        d[..., k] = rho_w[..., k] - dt * (dz_p + g * rho_i[..., k])

        # solve
        info = ws.info
        self._solver(a, b, c, d, info)
        if np.any(info != 0):
            column = tuple(int(i) for i in np.argwhere(info != 0)[0])
            raise NumericalFailureError(int(info[column]), column=column)

        # vertical momentum increment
        w_new = d
        upd_redge[wix, sa, sb, :nz] += w_new[..., :nz] - rho_w[..., :nz]

        # vertical mass and potential temperature fluxes
        upd_node[rix, sa, sb] -= dt * inv_dz * (w_new[..., 1:] - w_new[..., :-1])
        upd_node[pix, sa, sb] -= (
            dt * inv_dz * (w_new[..., 1:] * theta_i[..., 1:] - w_new[..., :-1] * theta_i[..., :-1])
        )

        # no flow through the ground
        upd_redge[wix, sa, sb, 0] = 0.0
