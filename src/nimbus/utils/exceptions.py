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

if TYPE_CHECKING:
    from typing import Optional


class ConfigurationError(ValueError):
    """Invalid setup of a component, detected before any state is touched."""


class ConstantNotFoundError(ConfigurationError):
    pass


class NumericalFailureError(RuntimeError):
    """A column solve broke down: the whole step must be discarded."""

    def __init__(
        self,
        info: int,
        patch: Optional[int] = None,
        element: Optional[tuple[int, int]] = None,
        column: Optional[tuple[int, int]] = None,
    ) -> None:
        self.info = info
        self.patch = patch
        self.element = element
        self.column = column

        where = []
        if patch is not None:
            where.append(f"patch {patch}")
        if element is not None:
            where.append(f"element ({element[0]}, {element[1]})")
        if column is not None:
            where.append(f"column ({column[0]}, {column[1]})")
        location = f" at {', '.join(where)}" if where else ""

        super().__init__(f"Failure in tridiagonal solve{location}: {info}.")


class PreconditionViolation(RuntimeError):
    """The caller passed arguments violating an entry condition."""


class BufferAliasingError(PreconditionViolation):
    def __init__(self, first: str, second: str, index: int) -> None:
        super().__init__(
            f"Invalid indices -- {first} and {second} data must be distinct "
            f"(both are {index})."
        )
