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
import warnings

from nimbus.utils.exceptions import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from typing import Optional, TypeVar, Union

    T = TypeVar("T")


def _get_registry(registry_class: type, registry_name: Optional[str]) -> dict:
    rname = registry_name or "registry"
    if not hasattr(registry_class, rname):
        raise RuntimeError(
            f"Class {registry_class.__name__} does not have the attribute '{rname}'."
        )
    return getattr(registry_class, rname)


def register(
    name: Union[str, Sequence[str]],
    registry_class: Optional[type[T]] = None,
    registry_name: Optional[str] = None,
) -> Callable:
    """Class decorator adding the decorated class to a name-based registry.

    Parameters
    ----------
    name : `str` or `Sequence[str]`
        The name(s) the class is registered under.
    registry_class : `type`, optional
        The class owning the registry. Defaults to the decorated class.
    registry_name : `str`, optional
        The name of the class attribute storing the registry.
        Defaults to "registry".
    """
    names = (name,) if isinstance(name, str) else tuple(name)

    def core(cls):
        registry = _get_registry(registry_class or cls, registry_name)

        for key in names:
            if key in registry and registry[key] is not cls:
                warnings.warn(
                    f"Cannot register {cls.__name__} as '{key}' since this name has "
                    f"already been used to register {registry[key].__name__}."
                )
            else:
                registry[key] = cls

        return cls

    return core


def factorize(
    name: str,
    registry_class: type[T],
    args: Sequence = (),
    kwargs: Optional[dict] = None,
    registry_name: Optional[str] = None,
) -> T:
    """Instantiate the class registered as `name`.

    Raises
    ------
    ConfigurationError :
        If no class has been registered under `name`.
    """
    registry = _get_registry(registry_class, registry_name)

    if name not in registry:
        raise ConfigurationError(
            f"No entity has been registered as '{name}'. Available options are: "
            f"{', '.join(sorted(registry.keys()))}."
        )

    return registry[name](*args, **(kwargs or {}))
