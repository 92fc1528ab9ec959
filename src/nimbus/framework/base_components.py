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
from typing import TYPE_CHECKING

from nimbus.domain.grid import SpectralGrid
from nimbus.utils.constants import get_physical_constants
from nimbus.utils.exceptions import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import Any, Optional

    from sympl import DataArray

    from nimbus.dynamics.workspace import Workspace
    from nimbus.physics.equation_set import EquationSet


class PhysicalConstantsComponent(abc.ABC):
    default_physical_constants = {}

    def __init__(self, physical_constants: Optional[Mapping[str, DataArray]] = None) -> None:
        self.rpc = get_physical_constants(self.default_physical_constants, physical_constants)

    @property
    def raw_physical_constants(self) -> dict[str, float]:
        return self.rpc.copy()

    @raw_physical_constants.setter
    def raw_physical_constants(self, value: Any) -> None:
        raise RuntimeError()


class GridComponent(abc.ABC):
    """A component built over a :class:`~nimbus.SpectralGrid`.

    The grid handle is type-checked once here; derived classes may then
    rely on the whole spectral-element interface without further checks.
    """

    def __init__(self, grid: SpectralGrid) -> None:
        if not isinstance(grid, SpectralGrid):
            raise ConfigurationError(
                f"Grid must be of type SpectralGrid, got {type(grid).__name__}."
            )
        self._grid = grid

    @property
    def grid(self) -> SpectralGrid:
        """The underlying :class:`~nimbus.SpectralGrid`."""
        return self._grid

    @property
    def equation_set(self) -> EquationSet:
        return self._grid.equation_set


class StageComponent(GridComponent):
    """A stage of the integrator sharing the scratch workspace of its owner."""

    def __init__(self, grid: SpectralGrid, workspace: Workspace) -> None:
        super().__init__(grid)

        if workspace.horizontal_order != grid.horizontal_order or workspace.nz != grid.nz:
            raise ConfigurationError(
                f"Workspace of shape ({workspace.horizontal_order}, "
                f"{workspace.horizontal_order}, {workspace.nz}) does not fit a grid "
                f"of order {grid.horizontal_order} with {grid.nz} levels."
            )
        self._ws = workspace

    @property
    def workspace(self) -> Workspace:
        return self._ws
