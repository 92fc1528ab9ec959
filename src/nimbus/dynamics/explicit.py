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

from nimbus.domain.basis import diff_alpha, diff_beta, weak_diff_alpha, weak_diff_beta
from nimbus.domain.grid import DataLocation
from nimbus.framework.base_components import StageComponent
from nimbus.utils.exceptions import ConfigurationError
from nimbus.utils.timex import Timer, to_seconds

if TYPE_CHECKING:
    from nimbus.domain.grid import GridPatch, SpectralGrid
    from nimbus.dynamics.workspace import Workspace
    from nimbus.utils.typingx import TimeDelta


class HorizontalExplicitStage(StageComponent):
    """
    Explicit part of the horizontally-explicit vertically-implicit splitting.

    Accumulate into the "update" slot the tendencies due to the horizontal
    flux divergence, the horizontal pressure gradient, the kinetic energy
    gradient and the vorticity flux, together with the vertical advection of
    horizontal momentum and the advection of vertical momentum.

    The "initial" slot is only read. Continuity across elements is not
    enforced.
    """

    def __init__(self, grid: SpectralGrid, workspace: Workspace) -> None:
        super().__init__(grid, workspace)

        if self.equation_set.kind != "primitive_nonhydrostatic":
            raise ConfigurationError(
                "The explicit stage requires the primitive non-hydrostatic equations, "
                f"got '{self.equation_set.kind}'."
            )

    def __call__(self, initial: int, update: int, dt: TimeDelta) -> None:
        """
        Parameters
        ----------
        initial : int
            Index of the data slot holding the state the tendencies are computed from.
        update : int
            Index of the data slot the tendencies are accumulated into.
        dt : `float` or `datetime.timedelta`
            The time step.
        """
        Timer.start(label="step_explicit")

        dt = to_seconds(dt)

        # pressure on model levels
        self.grid.compute_pressure(initial)

        for patch in self.grid.patches:
            for _, _, sa, sb in patch.box.elements():
                self._element_tendencies(patch, sa, sb, initial, update, dt)

        Timer.stop()

    def _element_tendencies(
        self, patch: GridPatch, sa: slice, sb: slice, initial: int, update: int, dt: float
    ) -> None:
        eqs = self.equation_set
        uix, vix, pix, wix, rix = eqs.UIx, eqs.VIx, eqs.PIx, eqs.WIx, eqs.RIx
        ws = self.workspace
        nz = self.grid.nz
        dxb = self.grid.dx_basis
        stiff = self.grid.stiffness
        inv_da = 1.0 / patch.element_delta_a
        inv_db = 1.0 / patch.element_delta_b

        init_node = patch.get_data_state(initial, DataLocation.NODE)
        init_redge = patch.get_data_state(initial, DataLocation.REDGE)
        upd_node = patch.get_data_state(update, DataLocation.NODE)
        upd_redge = patch.get_data_state(update, DataLocation.REDGE)

        rho = init_node[rix, sa, sb]
        rho_ua = init_node[uix, sa, sb]
        rho_ub = init_node[vix, sa, sb]
        rho_theta = init_node[pix, sa, sb]
        rho_w = init_redge[wix, sa, sb]

        jac = patch.jacobian[sa, sb]
        jac_redge = patch.jacobian_redge[sa, sb]
        inv_jac_2d = 1.0 / patch.jacobian_2d[sa, sb, np.newaxis]
        cov_a = patch.cov_metric_2d_a[sa, sb, np.newaxis, :]
        cov_b = patch.cov_metric_2d_b[sa, sb, np.newaxis, :]
        con_a = patch.contra_metric_2d_a[sa, sb, np.newaxis, :]
        con_b = patch.contra_metric_2d_b[sa, sb, np.newaxis, :]
        dr_node = patch.deriv_r_node[sa, sb]
        dr_redge = patch.deriv_r_redge[sa, sb]
        zn = patch.z_levels[sa, sb]
        zi = patch.z_interfaces[sa, sb]
        pressure = patch.data_pressure[sa, sb]

        #
        # interpolation from levels to interior interfaces
        #
        k = slice(1, nz)
        rho_i = ws.rho_redge
        ua_i = ws.ua_redge
        ub_i = ws.ub_redge
        theta_i = ws.theta_redge

        rho_i[..., k] = 0.5 * (rho[..., :-1] + rho[..., 1:])
        ua_i[..., k] = 0.5 * (rho_ua[..., :-1] + rho_ua[..., 1:])
        ub_i[..., k] = 0.5 * (rho_ub[..., :-1] + rho_ub[..., 1:])
        inv_rho_i = 1.0 / rho_i[..., k]
        theta_i[..., k] = 0.5 * (rho_theta[..., :-1] + rho_theta[..., 1:]) * inv_rho_i

        # vertical flux of horizontal momentum; none across the boundaries
        sdot = (
            rho_w[..., k]
            - ua_i[..., k] * dr_redge[..., k, 0]
            - ub_i[..., k] * dr_redge[..., k, 1]
        ) * inv_rho_i
        ws.sdot_ua_redge[...] = 0.0
        ws.sdot_ub_redge[...] = 0.0
        ws.sdot_ua_redge[..., k] = sdot * ua_i[..., k]
        ws.sdot_ub_redge[..., k] = sdot * ub_i[..., k]

        # horizontal fluxes of vertical momentum
        base_flux = jac_redge[..., k] * rho_w[..., k] * inv_rho_i
        ws.alpha_vertical_momentum_flux_redge[..., k] = base_flux * ua_i[..., k]
        ws.beta_vertical_momentum_flux_redge[..., k] = base_flux * ub_i[..., k]

        #
        # auxiliary quantities on model levels
        #
        inv_rho = 1.0 / rho
        con_ua = np.multiply(inv_rho, rho_ua, out=ws.con_ua)
        con_ub = np.multiply(inv_rho, rho_ub, out=ws.con_ub)
        cov_ua = ws.cov_ua
        cov_ub = ws.cov_ub
        cov_ua[...] = cov_a[..., 0] * con_ua + cov_a[..., 1] * con_ub
        cov_ub[...] = cov_b[..., 0] * con_ua + cov_b[..., 1] * con_ub

        amf = np.multiply(jac, rho_ua, out=ws.alpha_mass_flux)
        bmf = np.multiply(jac, rho_ub, out=ws.beta_mass_flux)
        theta = rho_theta * inv_rho
        apf = np.multiply(amf, theta, out=ws.alpha_pressure_flux)
        bpf = np.multiply(bmf, theta, out=ws.beta_pressure_flux)

        k2 = ws.k2
        k2[...] = 0.5 * (cov_ua * con_ua + cov_ub * con_ub)

        sdot_w = ws.sdot_w_node
        sdot_w[...] = (
            0.5 * (rho_w[..., :-1] + rho_w[..., 1:])
            - dr_node[..., 0] * rho_ua
            - dr_node[..., 1] * rho_ub
        )

        #
        # horizontal derivatives
        #
        da_p = inv_da * diff_alpha(pressure, dxb)
        db_p = inv_db * diff_beta(pressure, dxb)
        da_mf = inv_da * weak_diff_alpha(amf, stiff)
        db_mf = inv_db * weak_diff_beta(bmf, stiff)
        da_pf = inv_da * weak_diff_alpha(apf, stiff)
        db_pf = inv_db * weak_diff_beta(bpf, stiff)
        da_ke = inv_da * diff_alpha(k2, dxb)
        db_ke = inv_db * diff_beta(k2, dxb)
        da_cov_ub = inv_da * diff_alpha(cov_ub, dxb)
        db_cov_ua = inv_db * diff_beta(cov_ua, dxb)

        # from derivatives along coordinate surfaces to derivatives along z surfaces
        dz_p = np.empty_like(pressure)
        dz_p[..., 0] = (pressure[..., 1] - pressure[..., 0]) / (zn[..., 1] - zn[..., 0])
        dz_p[..., -1] = (pressure[..., -1] - pressure[..., -2]) / (zn[..., -1] - zn[..., -2])
        dz_p[..., 1:-1] = (pressure[..., 2:] - pressure[..., :-2]) / (zn[..., 2:] - zn[..., :-2])
        da_p -= dr_node[..., 0] * dz_p
        db_p -= dr_node[..., 1] * dz_p

        # contravariant gradients
        con_da_p = con_a[..., 0] * da_p + con_a[..., 1] * db_p
        con_db_p = con_b[..., 0] * da_p + con_b[..., 1] * db_p
        con_da_ke = con_a[..., 0] * da_ke + con_a[..., 1] * db_ke
        con_db_ke = con_b[..., 0] * da_ke + con_b[..., 1] * db_ke

        inv_jac = 1.0 / jac
        inv_dz = 1.0 / (zi[..., 1:] - zi[..., :-1])

        horizontal_flux_div = inv_jac * (da_mf + db_mf)
        dz_ua_flux = inv_dz * (ws.sdot_ua_redge[..., 1:] - ws.sdot_ua_redge[..., :-1])
        dz_ub_flux = inv_dz * (ws.sdot_ub_redge[..., 1:] - ws.sdot_ub_redge[..., :-1])

        abs_vorticity = patch.coriolis_f[sa, sb, np.newaxis] + inv_jac_2d * (da_cov_ub - db_cov_ua)
        vorticity_a = -abs_vorticity * inv_jac_2d * cov_ub
        vorticity_b = abs_vorticity * inv_jac_2d * cov_ua

        #
        # tendencies on model levels
        #
        upd_node[uix, sa, sb] += dt * (
            -con_da_p
            - rho * (con_da_ke + vorticity_a)
            - horizontal_flux_div * con_ua
            - dz_ua_flux
        )
        upd_node[vix, sa, sb] += dt * (
            -con_db_p
            - rho * (con_db_ke + vorticity_b)
            - horizontal_flux_div * con_ub
            - dz_ub_flux
        )
        upd_node[rix, sa, sb] -= dt * horizontal_flux_div
        upd_node[pix, sa, sb] -= dt * inv_jac * (da_pf + db_pf)

        #
        # tendencies of vertical momentum on interior interfaces
        #
        da_vmf = inv_da * weak_diff_alpha(ws.alpha_vertical_momentum_flux_redge[..., k], stiff)
        db_vmf = inv_db * weak_diff_beta(ws.beta_vertical_momentum_flux_redge[..., k], stiff)
        inv_dz_hat = 1.0 / (zn[..., 1:] - zn[..., :-1])
        dz_w_flux = inv_dz_hat * (sdot_w[..., 1:] - sdot_w[..., :-1])

        upd_redge[wix, sa, sb, k] -= dt * (
            (da_vmf + db_vmf) / jac_redge[..., k] + dz_w_flux
        )
