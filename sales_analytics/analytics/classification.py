"""
Classification Engine

Ordered, first-match-wins rule sets that assign segment labels.

A rule set is a list of (label, condition) pairs plus a mandatory default
label, so every row receives exactly one label. Conditions are polars
boolean expressions; a null condition counts as "not matched", which lets
absent inputs (a missing previous-year value, a missing cost) fall through
to the default.
"""

from dataclasses import dataclass
from typing import Any, Tuple

import polars as pl


@dataclass(frozen=True)
class Rule:
    """Label assigned when ``condition`` holds"""
    label: str
    condition: pl.Expr


@dataclass(frozen=True)
class RuleSet:
    """
    Named first-match rule list with a catch-all default.

    Example:
        sizes = RuleSet(
            "size",
            (Rule("small", pl.col("n") < 10), Rule("medium", pl.col("n") < 100)),
            default="large",
        )
        df = sizes.apply(df, "size")
        sizes.classify(n=42)  # "medium"
    """
    name: str
    rules: Tuple[Rule, ...]
    default: str

    def __post_init__(self):
        if not self.default:
            raise ValueError(f"Rule set '{self.name}' needs a default label")
        object.__setattr__(self, "rules", tuple(self.rules))

    def to_expr(self) -> pl.Expr:
        """Fold the rules into a when/then/otherwise chain"""
        if not self.rules:
            return pl.lit(self.default)

        first, *rest = self.rules
        chain = pl.when(first.condition).then(pl.lit(first.label))
        for rule in rest:
            chain = chain.when(rule.condition).then(pl.lit(rule.label))
        return chain.otherwise(pl.lit(self.default))

    def apply(self, df: pl.DataFrame, alias: str) -> pl.DataFrame:
        """Add the label column ``alias`` to ``df``"""
        return df.with_columns(self.to_expr().alias(alias))

    def classify(self, **values: Any) -> str:
        """Label a single value or tuple of named values"""
        row = pl.DataFrame([values], infer_schema_length=None)
        return row.select(self.to_expr().alias("label")).item()


def comparison_rules(
    name: str,
    column: str,
    positive: str,
    negative: str,
    equal: str,
) -> RuleSet:
    """
    Three-way rule set on the sign of a difference column.

    An absent difference (no previous value) is labelled ``equal``.
    """
    return RuleSet(
        name,
        (
            Rule(positive, pl.col(column) > 0),
            Rule(negative, pl.col(column) < 0),
        ),
        default=equal,
    )


# =============================================================================
# POLICIES
# =============================================================================

# Adjacent ranges share their inclusive bounds; first match puts 100 and 500
# in "100-500" and 1000 in "500-1000".
COST_RANGE = RuleSet(
    "cost_range",
    (
        Rule("Below 100", pl.col("cost") < 100),
        Rule("100-500", pl.col("cost").is_between(100, 500)),
        Rule("500-1000", pl.col("cost").is_between(500, 1000)),
    ),
    default="Above 1000",
)

# Day-based tenure, used by the customer spending segmentation
SPENDING_SEGMENT = RuleSet(
    "spending_segment",
    (
        Rule("VIP", (pl.col("total_spending") > 5000) & (pl.col("lifespan_days") >= 365)),
        Rule("Regular", (pl.col("total_spending") <= 5000) & (pl.col("lifespan_days") >= 365)),
    ),
    default="New",
)

# Month-based tenure, used by the customer report
CUSTOMER_SEGMENT = RuleSet(
    "customer_segment",
    (
        Rule("VIP", (pl.col("lifespan") >= 12) & (pl.col("total_sales") > 5000)),
        Rule("Regular", (pl.col("lifespan") >= 12) & (pl.col("total_sales") <= 5000)),
    ),
    default="New",
)

AGE_GROUP = RuleSet(
    "age_group",
    (
        Rule("Under 20", pl.col("age") < 20),
        Rule("20-29", pl.col("age").is_between(20, 29)),
        Rule("30-39", pl.col("age").is_between(30, 39)),
        Rule("40-49", pl.col("age").is_between(40, 49)),
    ),
    default="50 and above",
)

AVG_CHANGE = comparison_rules(
    "avg_change", "diff_avg_sales",
    positive="Above Average", negative="Below Average", equal="AVG",
)

PY_CHANGE = comparison_rules(
    "py_change", "diff_py",
    positive="Increase", negative="Decrease", equal="no change",
)
