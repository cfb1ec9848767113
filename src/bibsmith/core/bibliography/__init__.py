"""BibTeX element model exposed through the bibsmith public API.

Architecture
: `Element` and its variants (`StringConstant`, `Preamble`, `Comment`,
  `MetaContent`, `Entry`) share one contract: content derivation, ordering,
  structured serialization, and bibliography membership hooks.
: `Bibliography` owns elements and keeps the `strings` table of attached
  string constants in sync through those hooks.
: `parse_query` turns selectors such as ``"@article[year=2020]"`` into typed
  query objects that `Element.matches` evaluates.
: `parse_elements` relies on pybtex for entries and recovers the remaining
  blocks in source order.

Usage Example

```pycon
>>> from bibsmith.core.bibliography import Bibliography
>>> payload = \"\"\"@string{ acm = "ACM Press" }
... @article{knuth1984,
...   author = {Knuth, Donald E.},
...   title = {Literate Programming},
...   year = {1984},
... }\"\"\"
>>> bibliography = Bibliography.parse(payload)
>>> bibliography.strings["acm"].to_text()
'@string{ acm = "ACM Press" }'
>>> [element.id for element in bibliography.query("@article[year=1984]")]
[Symbol('knuth1984')]
```
"""

from __future__ import annotations

from .collection import Bibliography
from .elements import (
    Comment,
    Element,
    Expandable,
    MetaContent,
    Preamble,
    StringConstant,
    resolve_variant,
)
from .entry import STANDARD_FIELDS, Entry
from .issues import BibliographyIssue
from .parsing import parse_elements, parse_file, parse_value
from .query import (
    ByElement,
    ById,
    ByPattern,
    ByRawId,
    ByTypeClauses,
    MatchAll,
    Query,
    TypeClause,
    evaluate_conditions,
    evaluate_query,
    parse_query,
)
from .values import Symbol, Value, coerce_symbol


__all__ = [
    "STANDARD_FIELDS",
    "Bibliography",
    "BibliographyIssue",
    "ByElement",
    "ById",
    "ByPattern",
    "ByRawId",
    "ByTypeClauses",
    "Comment",
    "Element",
    "Entry",
    "Expandable",
    "MatchAll",
    "MetaContent",
    "Preamble",
    "Query",
    "StringConstant",
    "Symbol",
    "TypeClause",
    "Value",
    "coerce_symbol",
    "evaluate_conditions",
    "evaluate_query",
    "parse_elements",
    "parse_file",
    "parse_query",
    "parse_value",
    "resolve_variant",
]
