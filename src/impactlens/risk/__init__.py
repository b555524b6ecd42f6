"""Risk classification: rule table, engine and diff scanner."""

from impactlens.risk.diff_scan import scan_diff
from impactlens.risk.engine import RiskEngine, assess_risk, preview
from impactlens.risk.rules import DEFAULT_RULES, RULES_VERSION, RuleTable, load_rule_table

__all__ = [
    "DEFAULT_RULES",
    "RULES_VERSION",
    "RiskEngine",
    "RuleTable",
    "assess_risk",
    "load_rule_table",
    "preview",
    "scan_diff",
]
