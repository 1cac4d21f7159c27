from decimal import Decimal
from typing import Annotated

from pydantic import PlainSerializer

# Decimal amounts are kept exact internally and rendered as JSON numbers
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
