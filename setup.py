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
import sys
from setuptools import find_packages, setup


if sys.version_info < (3, 9):
    print("Python 3.9 or higher is required.")
    sys.exit(1)


setup(
    name="nimbus",
    version="0.1.0",
    description="Horizontally-explicit vertically-implicit dynamical core on spectral elements",
    license="GPLv3",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.9",
    install_requires=["numpy", "scipy", "sympl"],
    extras_require={"test": ["pytest", "hypothesis"]},
)
