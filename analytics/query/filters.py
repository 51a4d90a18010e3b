"""
FilterSet: optional platform / sale_month / region predicate for one request.

Values are taken verbatim. An empty ("") or missing value means the dimension
is not filtered; any other value, whitespace included, is a predicate and an
unknown value simply matches no rows.
"""
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

# Fixed dimension order shared by WHERE, SELECT, GROUP BY and ORDER BY.
DIMENSIONS: Tuple[str, ...] = ("platform", "sale_month", "region")


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value)
    # presence check only; whitespace is a real (if unmatched) value
    if value == "":
        return None
    return value


@dataclass(frozen=True)
class FilterSet:
    platform: Optional[str] = None
    sale_month: Optional[str] = None
    region: Optional[str] = None

    @classmethod
    def from_params(
        cls,
        platform: Optional[str] = None,
        sale_month: Optional[str] = None,
        region: Optional[str] = None,
    ) -> "FilterSet":
        return cls(platform=_clean(platform), sale_month=_clean(sale_month), region=_clean(region))

    def active(self) -> List[Tuple[str, str]]:
        """(dimension, value) pairs for present filters, in DIMENSIONS order."""
        pairs = []
        for dimension in DIMENSIONS:
            value = getattr(self, dimension)
            if value is not None:
                pairs.append((dimension, value))
        return pairs

    def with_defaults(self, platform: str, sale_month: str) -> "FilterSet":
        """Fill platform and sale_month when the caller left them out."""
        return replace(
            self,
            platform=self.platform if self.platform is not None else platform,
            sale_month=self.sale_month if self.sale_month is not None else sale_month,
        )

    def is_empty(self) -> bool:
        return not self.active()
