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
import math
import numpy as np
from typing import TYPE_CHECKING

from nimbus.domain.basis import diff_alpha, diff_beta
from nimbus.domain.grid import DataLocation, DataType, GridPatch, PatchBox, SpectralGrid
from nimbus.utils.exceptions import ConfigurationError

if TYPE_CHECKING:
    from typing import Optional

    from numpy.typing import DTypeLike

    from nimbus.physics.equation_set import EquationSet
    from nimbus.utils.typingx import NDArray


class CartesianGLLGrid(SpectralGrid):
    """
    A flat, doubly periodic box tiled by a single patch of GLL elements.

    The horizontal coordinates are Cartesian, so that the metric tensor is the
    identity and the Jacobian is one everywhere. Vertical levels are equally
    spaced between the ground and `z_top`.

    Parameters
    ----------
    equation_set : EquationSet
        The prognostic variables and the thermodynamics.
    nx_elements : int
        Number of elements along the first horizontal direction.
    ny_elements : int
        Number of elements along the second horizontal direction.
    nz : int
        Number of vertical levels.
    horizontal_order : int
        Number of collocation points per element and direction.
    x_length : `float`, optional
        Domain extent along the first horizontal direction, in meters.
    y_length : `float`, optional
        Domain extent along the second horizontal direction, in meters.
    z_top : `float`, optional
        Height of the model top, in meters.
    halo_width : `int`, optional
        Number of ghost nodes on each side of the patch.
    coriolis_f : `float`, optional
        Uniform Coriolis parameter, in s^-1.
    rayleigh_depth : `float`, optional
        Depth of the sponge layer below the model top, in meters.
    rayleigh_coeff : `float`, optional
        Damping rate at the model top, in s^-1.
    reference_length : `float`, optional
        Reference length for the rescaling of the diffusion coefficients.
    cartesian_xz : `bool`, optional
        ``True`` if the second horizontal direction is a dummy one.
    n_data_instances : `int`, optional
        Number of data slots.
    dtype : `numpy.dtype`, optional
        Data type of the stored fields.
    """

    def __init__(
        self,
        equation_set: EquationSet,
        nx_elements: int,
        ny_elements: int,
        nz: int,
        horizontal_order: int,
        x_length: float = 1.0e5,
        y_length: float = 1.0e5,
        z_top: float = 1.0e4,
        *,
        halo_width: int = 0,
        coriolis_f: float = 0.0,
        rayleigh_depth: float = 0.0,
        rayleigh_coeff: float = 0.0,
        reference_length: float = 0.0,
        cartesian_xz: bool = False,
        n_data_instances: int = 4,
        var_locations: Optional[list[DataLocation]] = None,
        dtype: DTypeLike = np.float64,
    ) -> None:
        if nx_elements < 1 or ny_elements < 1:
            raise ConfigurationError("At least one element per direction is required.")
        if rayleigh_depth < 0.0 or rayleigh_depth > z_top:
            raise ConfigurationError(
                f"The depth of the sponge layer ({rayleigh_depth}) should be between "
                f"zero and the model top ({z_top})."
            )

        super().__init__(
            equation_set,
            horizontal_order,
            nz,
            reference_length=reference_length,
            var_locations=var_locations,
            n_data_instances=n_data_instances,
        )
        self._cartesian_xz = cartesian_xz

        box = PatchBox(nx_elements, ny_elements, horizontal_order, halo_width)
        patch = GridPatch(
            box,
            nz,
            equation_set.components,
            equation_set.tracers,
            self.data_indices,
            x_length / nx_elements,
            y_length / ny_elements,
            dtype=dtype,
        )

        # identity metric
        patch.cov_metric_2d_a[..., 0] = 1.0
        patch.cov_metric_2d_b[..., 1] = 1.0
        patch.contra_metric_2d_a[..., 0] = 1.0
        patch.contra_metric_2d_b[..., 1] = 1.0
        patch.coriolis_f[...] = coriolis_f

        # vertical levels
        zi = np.linspace(0.0, z_top, nz + 1)
        zn = 0.5 * (zi[:-1] + zi[1:])
        patch.z_interfaces[...] = zi[np.newaxis, np.newaxis, :]
        patch.z_levels[...] = zn[np.newaxis, np.newaxis, :]

        # quadrature weights times the cell volume
        w = self.basis.weights
        area = np.zeros((box.a_total_width, box.b_total_width))
        for _, _, sa, sb in box.elements():
            area[sa, sb] = np.outer(w, w) * patch.element_delta_a * patch.element_delta_b
        patch.element_area_node[...] = area[:, :, np.newaxis] * np.diff(zi)[np.newaxis, np.newaxis, :]

        # sponge layer: damping rate growing as sin^2 towards the top
        if rayleigh_depth > 0.0 and rayleigh_coeff > 0.0:
            za = z_top - rayleigh_depth
            for location, z in ((DataLocation.NODE, zn), (DataLocation.REDGE, zi)):
                r = np.where(
                    z > za,
                    rayleigh_coeff * np.sin(0.5 * math.pi * (z - za) / rayleigh_depth) ** 2,
                    0.0,
                )
                patch.get_rayleigh_strength(location)[...] = r[np.newaxis, np.newaxis, :]

        self._patches.append(patch)

    @property
    def is_cartesian_xz(self) -> bool:
        return self._cartesian_xz

    def apply_dss(self, index: int, data_type: DataType) -> None:
        for patch in self._patches:
            if data_type == DataType.STATE:
                for location in DataLocation:
                    self._average_shared_nodes(patch.box, patch.get_data_state(index, location))
            else:
                self._average_shared_nodes(patch.box, patch.get_data_tracers(index))

    def compute_curl_and_div(
        self, patch: GridPatch, ua: NDArray, ub: NDArray, rho: NDArray
    ) -> tuple[NDArray, NDArray]:
        box = patch.box
        dxb = self.dx_basis
        inv_da = 1.0 / patch.element_delta_a
        inv_db = 1.0 / patch.element_delta_b

        curl = patch.data_vorticity
        div = patch.data_divergence
        curl[...] = 0.0
        div[...] = 0.0

        for _, _, sa, sb in box.elements():
            j2d = patch.jacobian_2d[sa, sb, np.newaxis]
            cov_a = patch.cov_metric_2d_a[sa, sb, np.newaxis, :]
            cov_b = patch.cov_metric_2d_b[sa, sb, np.newaxis, :]

            con_ua = ua[sa, sb] / rho[sa, sb]
            con_ub = ub[sa, sb] / rho[sa, sb]
            cov_ua = cov_a[..., 0] * con_ua + cov_a[..., 1] * con_ub
            cov_ub = cov_b[..., 0] * con_ua + cov_b[..., 1] * con_ub

            div[sa, sb] = (
                inv_da * diff_alpha(j2d * con_ua, dxb) + inv_db * diff_beta(j2d * con_ub, dxb)
            ) / j2d
            curl[sa, sb] = (inv_da * diff_alpha(cov_ub, dxb) - inv_db * diff_beta(cov_ua, dxb)) / j2d

        self._average_shared_nodes(box, curl[np.newaxis])
        self._average_shared_nodes(box, div[np.newaxis])

        return curl, div

    @staticmethod
    def _average_shared_nodes(box: PatchBox, field: NDArray) -> None:
        """Average the values at coincident element-edge nodes, periodically
        wrapping around the patch. `field` is indexed as (..., alpha, beta, level)."""
        n, h = box.horizontal_order, box.halo_width

        ea = np.arange(box.element_count_a)
        last = h + ea * n + n - 1
        first = h + ((ea + 1) % box.element_count_a) * n
        avg = 0.5 * (field[..., last, :, :] + field[..., first, :, :])
        field[..., last, :, :] = avg
        field[..., first, :, :] = avg

        eb = np.arange(box.element_count_b)
        last = h + eb * n + n - 1
        first = h + ((eb + 1) % box.element_count_b) * n
        avg = 0.5 * (field[..., last, :] + field[..., first, :])
        field[..., last, :] = avg
        field[..., first, :] = avg
