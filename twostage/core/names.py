"""
twostage.core.names
===================

Typed names shared across the package.

- `Namespace`: an Enum for well-known ledger namespaces.
- `Grid`: which candidate grid a discretization produced.
- Common `Literal` tags (extend per component).

Examples
--------
>>> from twostage.core.names import Namespace, Grid
>>> Namespace.DIAGNOSTICS.value
'diagnostics'
>>> Grid.N.value
'n'
"""

from __future__ import annotations
from enum import Enum
from typing import Literal


class Namespace(str, Enum):
    """Well-known ledger namespaces.

    - DESIGN: registered designs and sample spaces
    - DIAGNOSTICS: non-fatal notices (e.g. thinning of candidate grids)
    """

    DESIGN = "design"
    DIAGNOSTICS = "diagnostics"


class Grid(str, Enum):
    """Candidate grids produced by sample-space discretization."""

    N = "n"
    C = "c"


# Common tags (extend as needed).
ThinningTag = Literal["diag:thinning"]
THINNING_TAG: ThinningTag = "diag:thinning"
