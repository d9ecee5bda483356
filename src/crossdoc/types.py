"""Type aliases for crossdoc package.

Request shapes are plain mappings so callers can build them inline.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Union

Scalar = Union[str, int, float, Decimal, bool, datetime]

# One stored record
Entity = Dict[str, Any]

# {"equals": "Sam", "mode": "INSENSITIVE"}
FilterCondition = Dict[str, Union[Scalar, List[Scalar]]]

# {"firstName": {"startsWith": "Sa"}, "age": {"gte": 18}}
WhereClause = Dict[str, FilterCondition]

SelectSpec = Dict[str, bool]
OrderSpec = Dict[str, str]

DocId = str

Clock = Callable[[], datetime]
IdFactory = Callable[[], str]
