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
import numpy as np
import pytest

from nimbus import ConfigurationError, EquationSet


@pytest.mark.parametrize(
    "kind, components, density_index",
    (("advection", 0, 4), ("shallow_water", 3, 2), ("primitive_nonhydrostatic", 5, 4)),
)
def test_kinds(kind, components, density_index):
    eqs = EquationSet(kind, tracers=2)

    assert eqs.kind == kind
    assert eqs.components == components
    assert eqs.tracers == 2
    assert eqs.density_index == density_index


def test_invalid_arguments():
    with pytest.raises(ConfigurationError):
        EquationSet("primitive_hydrostatic")
    with pytest.raises(ConfigurationError):
        EquationSet("shallow_water", tracers=-1)


def test_constants(physical_constants):
    eqs = EquationSet("primitive_nonhydrostatic")
    assert eqs.g == pytest.approx(9.80616)
    assert eqs.gamma == pytest.approx(1004.5 / (1004.5 - 287.0))

    eqs = EquationSet("primitive_nonhydrostatic", physical_constants=physical_constants)
    assert eqs.g == pytest.approx(9.81)
    assert eqs.gamma == pytest.approx(1004.0 / (1004.0 - 287.05))
    assert eqs.raw_physical_constants["reference_air_pressure"] == pytest.approx(1e5)

    with pytest.raises(RuntimeError):
        eqs.raw_physical_constants = {}


def test_equation_of_state():
    eqs = EquationSet("primitive_nonhydrostatic")
    rd = eqs.rpc["gas_constant_of_dry_air"]
    p0 = eqs.rpc["reference_air_pressure"]

    # theta = 300 K, rho such that the pressure equals p0
    rho_theta = np.array([p0 / rd, 0.5 * p0 / rd, 1.2 * 300.0])
    p = eqs.pressure_from_rho_theta(rho_theta)

    assert p[0] == pytest.approx(p0)
    assert p[1] == pytest.approx(p0 * 0.5**eqs.gamma)
    assert p[2] == pytest.approx(p0 * (rd * 360.0 / p0) ** eqs.gamma)
    assert np.array_equal(rho_theta[0], p0 / rd)

    out = np.zeros(3)
    ret = eqs.pressure_from_rho_theta(rho_theta, out=out)
    assert ret is out
    assert np.array_equal(out, p)


def test_pressure_derivative():
    eqs = EquationSet("primitive_nonhydrostatic")
    rho_theta = np.linspace(200.0, 400.0, 11)
    p = eqs.pressure_from_rho_theta(rho_theta)

    eps = 1e-4
    fd = (
        eqs.pressure_from_rho_theta(rho_theta + eps)
        - eqs.pressure_from_rho_theta(rho_theta - eps)
    ) / (2.0 * eps)
    assert np.allclose(eqs.dp_drho_theta(p, rho_theta), fd, rtol=1e-6)


if __name__ == "__main__":
    pytest.main([__file__])
