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
# domain
from nimbus.domain.basis import GLLBasis
from nimbus.domain.grid import (
    DATA_INDEX_REFERENCE,
    DataLocation,
    DataType,
    GridPatch,
    PatchBox,
    SpectralGrid,
)
from nimbus.domain.subclasses.grids import CartesianGLLGrid

# dwarfs
from nimbus.dwarfs.hyperdiffusion import SpectralHyperdiffusion
from nimbus.dwarfs.positivity_filter import PositivityFilter
from nimbus.dwarfs.rayleigh_damping import RayleighDamping

# dynamics
from nimbus.dynamics.explicit import HorizontalExplicitStage
from nimbus.dynamics.hevi import HEVIDynamics
from nimbus.dynamics.implicit import VerticalImplicitStage
from nimbus.dynamics.tridiagonal import TridiagonalSolver
from nimbus.dynamics.workspace import Workspace

# framework
from nimbus.framework.options import HyperdiffusionOptions, StorageOptions
from nimbus.framework.register import factorize, register

# physics
from nimbus.physics.equation_set import EquationSet

# utilities
from nimbus.utils import typingx
from nimbus.utils.exceptions import (
    BufferAliasingError,
    ConfigurationError,
    ConstantNotFoundError,
    NumericalFailureError,
    PreconditionViolation,
)
from nimbus.utils.timex import Timer, get_time_string

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version(__name__)
except PackageNotFoundError:
    __version__ = "unknown"
finally:
    del version, PackageNotFoundError

#
from nimbus.dynamics.subclasses import tridiagonal_solvers
