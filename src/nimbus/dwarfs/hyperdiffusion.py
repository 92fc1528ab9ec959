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
from nimbus.domain.grid import DATA_INDEX_REFERENCE, DataLocation
from nimbus.framework.base_components import StageComponent
from nimbus.utils.exceptions import ConfigurationError
from nimbus.utils.timex import Timer, to_seconds

if TYPE_CHECKING:
    from typing import Optional

    from nimbus.domain.grid import GridPatch
    from nimbus.utils.typingx import NDArray, TimeDelta


class SpectralHyperdiffusion(StageComponent):
    """
    Horizontal Laplacian diffusion discretized in weak form on the
    spectral elements.

    Higher-order hyperdiffusion is obtained by applying the operators
    repeatedly, enforcing continuity in between. Each application
    accumulates into the target slot, which is therefore expected to hold
    meaningful values beforehand.
    """

    #: exponent of the element size in the local rescaling of the coefficients
    nu_scaling_exponent = 3.2

    def scalar(
        self,
        initial: int,
        update: int,
        dt: TimeDelta,
        nu: float,
        scale_nu_locally: bool,
        component: int = -1,
        remove_ref_state: bool = False,
    ) -> None:
        """
        Diffuse the thermodynamic state components and the tracers.

        Parameters
        ----------
        initial : int
            Index of the data slot to diffuse.
        update : int
            Index of the data slot receiving the tendencies.
        dt : `float` or `datetime.timedelta`
            The time step. Can be negative.
        nu : float
            The diffusion coefficient.
        scale_nu_locally : bool
            ``True`` to rescale `nu` with the element size.
        component : `int`, optional
            Index of the single state component to diffuse. Defaults to -1,
            meaning all components from the potential temperature density
            onwards and all tracers.
        remove_ref_state : `bool`, optional
            ``True`` to diffuse the deviation from the reference state.
            Never applied to tracers.
        """
        n_components = self.equation_set.components
        if component < -1 or component >= n_components:
            raise ConfigurationError(
                f"Invalid component index {component}: expected -1 or a value "
                f"between 0 and {n_components - 1}."
            )

        Timer.start(label="hyperdiffusion")

        dt = to_seconds(dt)
        components = range(2, n_components) if component == -1 else (component,)

        for patch in self.grid.patches:
            dt_nu = dt * self.get_local_nu(patch, nu, scale_nu_locally)

            for c in components:
                location = self.grid.get_var_location(c)
                jacobian = (
                    patch.jacobian if location == DataLocation.NODE else patch.jacobian_redge
                )
                ref = (
                    patch.get_reference_state(location)[c] if remove_ref_state else None
                )
                self._diffuse_scalar(
                    patch,
                    patch.get_data_state(initial, location)[c],
                    patch.get_data_state(update, location)[c],
                    jacobian,
                    dt_nu,
                    ref=ref,
                )

            if component == -1:
                tracers_initial = patch.get_data_tracers(initial)
                tracers_update = patch.get_data_tracers(update)
                for t in range(self.equation_set.tracers):
                    self._diffuse_scalar(
                        patch, tracers_initial[t], tracers_update[t], patch.jacobian, dt_nu
                    )

        Timer.stop()

    def vector(
        self,
        initial: int,
        working: int,
        update: int,
        dt: TimeDelta,
        nu_div: float,
        nu_vort: float,
        scale_nu_locally: bool,
    ) -> None:
        """
        Diffuse the horizontal momentum through the gradient of the divergence
        and the curl of the vorticity.

        Parameters
        ----------
        initial : int
            Index of the data slot providing the density.
            If :data:`~nimbus.domain.grid.DATA_INDEX_REFERENCE`, both the
            velocity and the density are taken from the reference state.
        working : int
            Index of the data slot whose velocity is diffused.
        update : int
            Index of the data slot receiving the tendencies.
        dt : `float` or `datetime.timedelta`
            The time step. Can be negative.
        nu_div : float
            The diffusion coefficient for the divergent modes.
        nu_vort : float
            The diffusion coefficient for the rotational modes.
        scale_nu_locally : bool
            ``True`` to rescale the coefficients with the element size.
        """
        eqs = self.equation_set
        if eqs.components < 2:
            # no momentum to diffuse
            return

        Timer.start(label="hyperdiffusion")

        dt = to_seconds(dt)
        uix, vix, rix = eqs.UIx, eqs.VIx, eqs.density_index
        stiff = self.grid.stiffness

        for patch in self.grid.patches:
            if initial == DATA_INDEX_REFERENCE:
                source = patch.get_reference_state(DataLocation.NODE)
                ua, ub, rho = source[uix], source[vix], source[rix]
            else:
                source = patch.get_data_state(working, DataLocation.NODE)
                ua, ub = source[uix], source[vix]
                rho = patch.get_data_state(initial, DataLocation.NODE)[rix]

            curl, div = self.grid.compute_curl_and_div(patch, ua, ub, rho)

            local_nu_div = self.get_local_nu(patch, nu_div, scale_nu_locally)
            local_nu_vort = self.get_local_nu(patch, nu_vort, scale_nu_locally)
            inv_da = 1.0 / patch.element_delta_a
            inv_db = 1.0 / patch.element_delta_b
            upd = patch.get_data_state(update, DataLocation.NODE)

            for _, _, sa, sb in patch.box.elements():
                da_div = inv_da * weak_diff_alpha(div[sa, sb], stiff)
                db_div = inv_db * weak_diff_beta(div[sa, sb], stiff)
                da_curl = inv_da * weak_diff_alpha(curl[sa, sb], stiff)
                db_curl = inv_db * weak_diff_beta(curl[sa, sb], stiff)

                jac_2d = patch.jacobian_2d[sa, sb, np.newaxis]
                con_a = patch.contra_metric_2d_a[sa, sb, np.newaxis, :]
                con_b = patch.contra_metric_2d_b[sa, sb, np.newaxis, :]

                cov_ua = local_nu_div * da_div - local_nu_vort * jac_2d * (
                    con_b[..., 0] * da_curl + con_b[..., 1] * db_curl
                )
                cov_ub = local_nu_div * db_div + local_nu_vort * jac_2d * (
                    con_a[..., 0] * da_curl + con_a[..., 1] * db_curl
                )

                con_ua = con_a[..., 0] * cov_ua + con_a[..., 1] * cov_ub
                con_ub = con_b[..., 0] * cov_ua + con_b[..., 1] * cov_ub

                upd[uix, sa, sb] -= dt * rho[sa, sb] * con_ua
                upd[vix, sa, sb] -= dt * rho[sa, sb] * con_ub

        Timer.stop()

    def get_local_nu(self, patch: GridPatch, nu: float, scale_nu_locally: bool) -> float:
        reference_length = self.grid.reference_length
        if scale_nu_locally and reference_length != 0.0:
            return nu * (patch.element_delta_a / reference_length) ** self.nu_scaling_exponent
        return nu

    def _diffuse_scalar(
        self,
        patch: GridPatch,
        field_initial: NDArray,
        field_update: NDArray,
        jacobian: NDArray,
        dt_nu: float,
        ref: Optional[NDArray] = None,
    ) -> None:
        ws = self.workspace
        dxb = self.grid.dx_basis
        stiff = self.grid.stiffness
        inv_da = 1.0 / patch.element_delta_a
        inv_db = 1.0 / patch.element_delta_b
        nk = field_initial.shape[-1]

        buffer = ws.levels(nk, "buffer_state")
        j_grad_a = ws.levels(nk, "j_gradient_a")
        j_grad_b = ws.levels(nk, "j_gradient_b")

        for _, _, sa, sb in patch.box.elements():
            buffer[...] = field_initial[sa, sb]
            if ref is not None:
                buffer -= ref[sa, sb]

            da_psi = inv_da * diff_alpha(buffer, dxb)
            db_psi = inv_db * diff_beta(buffer, dxb)

            jac = jacobian[sa, sb]
            con_a = patch.contra_metric_2d_a[sa, sb, np.newaxis, :]
            con_b = patch.contra_metric_2d_b[sa, sb, np.newaxis, :]
            j_grad_a[...] = jac * (con_a[..., 0] * da_psi + con_a[..., 1] * db_psi)
            j_grad_b[...] = jac * (con_b[..., 0] * da_psi + con_b[..., 1] * db_psi)

            field_update[sa, sb] += (dt_nu / jac) * (
                inv_da * weak_diff_alpha(j_grad_a, stiff)
                + inv_db * weak_diff_beta(j_grad_b, stiff)
            )
