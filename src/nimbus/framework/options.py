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
from dataclasses import dataclass
import numpy as np
from numpy.typing import DTypeLike

from nimbus.utils.exceptions import ConfigurationError


@dataclass
class StorageOptions:
    dtype: DTypeLike = np.float64


@dataclass
class HyperdiffusionOptions:
    """Strength and order of the horizontal hyperdiffusion."""

    order: int = 4
    nu_scalar: float = 0.0
    nu_div: float = 0.0
    nu_vort: float = 0.0
    nu_instep_div: float = 0.0

    allowed_orders = (0, 2, 4)

    def __post_init__(self) -> None:
        if self.order not in self.allowed_orders:
            raise ConfigurationError(
                f"Invalid viscosity order {self.order}: "
                f"either {', '.join(str(o) for o in self.allowed_orders)} was expected."
            )
        for name in ("nu_scalar", "nu_div", "nu_vort", "nu_instep_div"):
            if getattr(self, name) < 0.0:
                raise ConfigurationError(f"{name} must be non-negative.")

    @property
    def is_inviscid(self) -> bool:
        return self.nu_scalar == 0.0 and self.nu_div == 0.0 and self.nu_vort == 0.0
