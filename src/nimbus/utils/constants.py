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
from typing import TYPE_CHECKING

from sympl import DataArray

from nimbus.utils.exceptions import ConstantNotFoundError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import Optional


default_physical_constants = {
    "gas_constant_of_dry_air": DataArray(287.0, attrs={"units": "J K^-1 kg^-1"}),
    "gravitational_acceleration": DataArray(9.80616, attrs={"units": "m s^-2"}),
    "reference_air_pressure": DataArray(1.0e5, attrs={"units": "Pa"}),
    "specific_heat_of_dry_air_at_constant_pressure": DataArray(
        1004.5, attrs={"units": "J K^-1 kg^-1"}
    ),
}


def get_constant(
    name: str,
    units: str,
    physical_constants: Optional[Mapping[str, DataArray]] = None,
    default_value: Optional[DataArray] = None,
) -> float:
    """
    Get the value of a physical constant in the desired units.

    The function first looks for the constant in `physical_constants`,
    then in :data:`nimbus.utils.constants.default_physical_constants`,
    and finally reverts to `default_value`.

    Parameters
    ----------
    name : str
        Name of the physical constant.
    units : str
        Units in which the constant should be expressed.
    physical_constants : `Mapping[str, sympl.DataArray]`, optional
        User-provided values of the constants.
    default_value : `sympl.DataArray`, optional
        1-item :class:`sympl.DataArray` representing the default value for the
        physical constant.

    Return
    ------
    float :
        Value of the physical constant.

    Raises
    ------
    ConstantNotFoundError :
        If the constant cannot be found.
    """
    const = physical_constants.get(name, None) if physical_constants is not None else None
    const = const if const is not None else default_physical_constants.get(name, default_value)
    if const is None:
        raise ConstantNotFoundError(f"{name} not found.")
    return const.to_units(units).values.item()


def get_physical_constants(
    default_constants: Mapping[str, DataArray],
    physical_constants: Optional[Mapping[str, DataArray]] = None,
) -> dict[str, float]:
    """
    Parameters
    ----------
    default_constants : Mapping[str, sympl.DataArray]
        Dictionary whose keys are names of some physical constants,
        and whose values are :class:`sympl.DataArray`\\s storing the
        default values and units of those constants.
    physical_constants : `Mapping[str, sympl.DataArray]`, optional
        Dictionary whose keys are names of some physical constants,
        and whose values are :class:`sympl.DataArray`\\s storing the
        values and units of those constants.

    Return
    ------
    dict[str, float] :
        Dictionary whose keys are the names of the physical constants
        contained in `default_constants`, and whose values are the values
        of those constants in the default units.
    """
    return {
        name: get_constant(
            name, d_const.attrs["units"], physical_constants, default_value=d_const
        )
        for name, d_const in default_constants.items()
    }
