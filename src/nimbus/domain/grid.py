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
import abc
import enum
import numpy as np
from typing import TYPE_CHECKING

from nimbus.domain.basis import GLLBasis
from nimbus.utils.exceptions import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from typing import Optional

    from numpy.typing import DTypeLike

    from nimbus.physics.equation_set import EquationSet
    from nimbus.utils.typingx import NDArray


DATA_INDEX_REFERENCE = -1


class DataLocation(enum.Enum):
    NODE = "node"
    REDGE = "redge"


class DataType(enum.Enum):
    STATE = "state"
    TRACERS = "tracers"


class PatchBox:
    """Index bookkeeping for a patch of ``element_count_a x element_count_b``
    elements of order ``horizontal_order``, surrounded by ``halo_width``
    ghost nodes on each side."""

    def __init__(
        self, element_count_a: int, element_count_b: int, horizontal_order: int, halo_width: int = 0
    ) -> None:
        self.element_count_a = element_count_a
        self.element_count_b = element_count_b
        self.horizontal_order = horizontal_order
        self.halo_width = halo_width

    @property
    def a_total_width(self) -> int:
        return self.element_count_a * self.horizontal_order + 2 * self.halo_width

    @property
    def b_total_width(self) -> int:
        return self.element_count_b * self.horizontal_order + 2 * self.halo_width

    @property
    def a_interior(self) -> slice:
        return slice(self.halo_width, self.a_total_width - self.halo_width)

    @property
    def b_interior(self) -> slice:
        return slice(self.halo_width, self.b_total_width - self.halo_width)

    def element_slices(self, a: int, b: int) -> tuple[slice, slice]:
        """The alpha and beta slices spanning the collocation points of element (a, b)."""
        n = self.horizontal_order
        ia = a * n + self.halo_width
        ib = b * n + self.halo_width
        return slice(ia, ia + n), slice(ib, ib + n)

    def elements(self) -> Iterator[tuple[int, int, slice, slice]]:
        for a in range(self.element_count_a):
            for b in range(self.element_count_b):
                yield (a, b) + self.element_slices(a, b)


class GridPatch:
    """
    Geometry, metric terms and data slots of a rectangular patch.

    Every horizontal array spans the whole patch, halo included.
    Metric arrays are meant to be read-only to the dynamical core.
    """

    def __init__(
        self,
        box: PatchBox,
        nz: int,
        n_components: int,
        n_tracers: int,
        data_indices: Sequence[int],
        element_delta_a: float,
        element_delta_b: float,
        dtype: DTypeLike = np.float64,
    ) -> None:
        self.box = box
        self.nz = nz
        self.element_delta_a = element_delta_a
        self.element_delta_b = element_delta_b

        na, nb = box.a_total_width, box.b_total_width

        def zeros(*shape):
            return np.zeros(shape, dtype=dtype)

        # metric terms
        self.jacobian_2d = np.ones((na, nb), dtype=dtype)
        self.jacobian = np.ones((na, nb, nz), dtype=dtype)
        self.jacobian_redge = np.ones((na, nb, nz + 1), dtype=dtype)
        self.cov_metric_2d_a = zeros(na, nb, 2)
        self.cov_metric_2d_b = zeros(na, nb, 2)
        self.contra_metric_2d_a = zeros(na, nb, 2)
        self.contra_metric_2d_b = zeros(na, nb, 2)
        self.deriv_r_node = zeros(na, nb, nz, 2)
        self.deriv_r_redge = zeros(na, nb, nz + 1, 2)
        self.element_area_node = zeros(na, nb, nz)

        # geometry
        self.z_levels = zeros(na, nb, nz)
        self.z_interfaces = zeros(na, nb, nz + 1)
        self.coriolis_f = zeros(na, nb)

        # diagnostics
        self.data_pressure = zeros(na, nb, nz)
        self.data_vorticity = zeros(na, nb, nz)
        self.data_divergence = zeros(na, nb, nz)

        # sponge layer
        self._rayleigh = {
            DataLocation.NODE: zeros(na, nb, nz),
            DataLocation.REDGE: zeros(na, nb, nz + 1),
        }

        # data slots
        self._state = {}
        self._tracers = {}
        for index in tuple(data_indices) + (DATA_INDEX_REFERENCE,):
            self._state[index] = {
                DataLocation.NODE: zeros(n_components, na, nb, nz),
                DataLocation.REDGE: zeros(n_components, na, nb, nz + 1),
            }
            self._tracers[index] = zeros(n_tracers, na, nb, nz)

    @property
    def data_indices(self) -> tuple[int, ...]:
        return tuple(index for index in self._state if index != DATA_INDEX_REFERENCE)

    def get_data_state(self, index: int, location: DataLocation) -> NDArray:
        try:
            return self._state[index][location]
        except KeyError:
            raise KeyError(f"No state data with index {index} at {location}.")

    def get_data_tracers(self, index: int) -> NDArray:
        try:
            return self._tracers[index]
        except KeyError:
            raise KeyError(f"No tracer data with index {index}.")

    def get_reference_state(self, location: DataLocation) -> NDArray:
        return self._state[DATA_INDEX_REFERENCE][location]

    def get_rayleigh_strength(self, location: DataLocation) -> NDArray:
        return self._rayleigh[location]


class SpectralGrid(abc.ABC):
    """
    Abstract base class for the horizontally spectral-element, vertically
    layered grids the dynamical core runs on.

    The dynamical core only ever relies on the interface defined here:
    patch geometry and metric terms, the GLL derivative operators,
    the variable staggering, the data slots, and the operations
    enforcing continuity across element boundaries.
    """

    def __init__(
        self,
        equation_set: EquationSet,
        horizontal_order: int,
        nz: int,
        *,
        reference_length: float = 0.0,
        var_locations: Optional[Sequence[DataLocation]] = None,
        n_data_instances: int = 4,
    ) -> None:
        if nz < 2:
            raise ConfigurationError(f"At least two vertical levels are required, got {nz}.")

        self._eqs = equation_set
        self._basis = GLLBasis(horizontal_order)
        self._nz = nz
        self._reference_length = reference_length
        self._data_indices = tuple(range(n_data_instances))

        n_components = equation_set.components
        if var_locations is None:
            var_locations = [DataLocation.NODE] * n_components
            if equation_set.kind == "primitive_nonhydrostatic":
                var_locations[equation_set.WIx] = DataLocation.REDGE
        if len(var_locations) != n_components:
            raise ConfigurationError(
                f"Expected {n_components} variable locations, got {len(var_locations)}."
            )
        self._var_locations = tuple(var_locations)

        self._patches: list[GridPatch] = []

    @property
    def equation_set(self) -> EquationSet:
        return self._eqs

    @property
    def horizontal_order(self) -> int:
        return self._basis.order

    @property
    def nz(self) -> int:
        """Number of vertical levels."""
        return self._nz

    @property
    def data_indices(self) -> tuple[int, ...]:
        return self._data_indices

    @property
    def patches(self) -> list[GridPatch]:
        """The active patches."""
        return self._patches

    @property
    def basis(self) -> GLLBasis:
        return self._basis

    @property
    def dx_basis(self) -> NDArray:
        return self._basis.dx_basis

    @property
    def stiffness(self) -> NDArray:
        return self._basis.stiffness

    @property
    def reference_length(self) -> float:
        """Length used to rescale the diffusion coefficients; zero disables rescaling."""
        return self._reference_length

    @property
    def is_cartesian_xz(self) -> bool:
        return False

    @property
    def has_rayleigh_friction(self) -> bool:
        return any(
            np.any(patch.get_rayleigh_strength(location) != 0.0)
            for patch in self._patches
            for location in DataLocation
        )

    def get_var_location(self, component: int) -> DataLocation:
        return self._var_locations[component]

    def copy_data(self, src: int, dst: int, data_type: DataType) -> None:
        for patch in self._patches:
            if data_type == DataType.STATE:
                for location in DataLocation:
                    patch.get_data_state(dst, location)[...] = patch.get_data_state(src, location)
            else:
                patch.get_data_tracers(dst)[...] = patch.get_data_tracers(src)

    def zero_data(self, index: int, data_type: DataType) -> None:
        for patch in self._patches:
            if data_type == DataType.STATE:
                for location in DataLocation:
                    patch.get_data_state(index, location)[...] = 0.0
            else:
                patch.get_data_tracers(index)[...] = 0.0

    def compute_pressure(self, index: int) -> None:
        """Diagnose the pressure from the potential temperature density."""
        pix = self._eqs.PIx
        for patch in self._patches:
            rhotheta = patch.get_data_state(index, DataLocation.NODE)[pix]
            self._eqs.pressure_from_rho_theta(rhotheta, out=patch.data_pressure)

    @abc.abstractmethod
    def apply_dss(self, index: int, data_type: DataType) -> None:
        """Make the values shared by adjacent elements consistent
        (Direct Stiffness Summation)."""

    @abc.abstractmethod
    def compute_curl_and_div(
        self, patch: GridPatch, ua: NDArray, ub: NDArray, rho: NDArray
    ) -> tuple[NDArray, NDArray]:
        """
        Compute the relative vorticity and the divergence of the horizontal
        velocity on the nodes of a patch.

        Parameters
        ----------
        patch : GridPatch
            The patch.
        ua : numpy.ndarray
            The alpha momentum on the nodes.
        ub : numpy.ndarray
            The beta momentum on the nodes.
        rho : numpy.ndarray
            The density on the nodes.

        Return
        ------
        curl : numpy.ndarray
            The vorticity, also stored in ``patch.data_vorticity``.
        div : numpy.ndarray
            The divergence, also stored in ``patch.data_divergence``.
        """
