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
import pytest
from sympl import DataArray

from nimbus import ConstantNotFoundError
from nimbus.utils.constants import (
    default_physical_constants,
    get_constant,
    get_physical_constants,
)


def test_get_constant():
    assert get_constant("gravitational_acceleration", "m s^-2") == pytest.approx(9.80616)
    assert get_constant("reference_air_pressure", "hPa") == pytest.approx(1000.0)
    assert get_constant("gas_constant_of_dry_air", "J K^-1 g^-1") == pytest.approx(0.287)


def test_get_constant_override(physical_constants):
    assert get_constant(
        "gravitational_acceleration", "m s^-2", physical_constants
    ) == pytest.approx(9.81)
    assert get_constant("reference_air_pressure", "Pa", physical_constants) == pytest.approx(1e5)

    # missing entries fall back to the defaults
    assert get_constant("gravitational_acceleration", "m s^-2", {}) == pytest.approx(9.80616)


def test_get_constant_default_value():
    value = get_constant(
        "foo", "m", default_value=DataArray(2.0, attrs={"units": "km"})
    )
    assert value == pytest.approx(2000.0)

    with pytest.raises(ConstantNotFoundError):
        get_constant("foo", "m")


def test_get_physical_constants(physical_constants):
    raw = get_physical_constants(default_physical_constants)
    assert set(raw.keys()) == set(default_physical_constants.keys())
    assert raw["specific_heat_of_dry_air_at_constant_pressure"] == pytest.approx(1004.5)

    raw = get_physical_constants(default_physical_constants, physical_constants)
    assert raw["gas_constant_of_dry_air"] == pytest.approx(287.05)
    assert raw["reference_air_pressure"] == pytest.approx(1e5)

    defaults = {"foo": DataArray(1.0, attrs={"units": "m"})}
    assert get_physical_constants(defaults, {"foo": DataArray(3.0, attrs={"units": "cm"})}) == {
        "foo": pytest.approx(0.03)
    }


if __name__ == "__main__":
    pytest.main([__file__])
