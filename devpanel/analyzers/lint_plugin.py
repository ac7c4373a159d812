"""
Rule-based JavaScript lint plugin.
"""

import logging
from typing import Dict, List, Optional, Any
from datetime import datetime

from devpanel.config import get_default_settings
from devpanel.plugins.plugin_interface import BasePlugin, ActionHandler, require_fields

logger = logging.getLogger(__name__)

CONTROL_KEYWORDS = ("if ", "for ", "while ")


class LintPlugin(BasePlugin):
    """Scans source text line by line against a small fixed rule set.

    Every linted file is kept in a rolling history so that
    :meth:`get_lint_stats` aggregates across all files linted since the
    last :meth:`clear_results`.
    """

    def __init__(self, rules: Optional[Dict[str, str]] = None):
        super().__init__(
            plugin_id="eslint",
            name="ESLint Integration",
            version="1.0.0",
            description="Real-time code linting and quality analysis",
            icon="AlertTriangle",
            category="code-quality",
            settings=get_default_settings("eslint")
        )
        self.lint_rules: Dict[str, str] = {**self.settings["lintRules"], **(rules or {})}
        self.settings["lintRules"] = dict(self.lint_rules)
        self.lint_results: List[Dict[str, Any]] = []
        self.is_linting = False

    def _enabled(self, rule: str) -> bool:
        return self.lint_rules.get(rule, "off") not in ("off", 0, False, None)

    def _severity(self, rule: str) -> str:
        return "error" if self.lint_rules.get(rule) == "error" else "warning"

    def validate_settings(self, settings: Dict[str, Any]):
        rules = settings.get("lintRules")
        if rules is not None and not isinstance(rules, dict):
            raise ValueError("lintRules must be a mapping of rule name to level")

    def update_settings(self, new_settings: Dict[str, Any]):
        if "lintRules" in new_settings:
            self.validate_settings(new_settings)
            self.lint_rules = {**self.lint_rules, **new_settings["lintRules"]}
            new_settings = {**new_settings, "lintRules": dict(self.lint_rules)}
        super().update_settings(new_settings)

    def _lint_line(self, line: str, line_number: int) -> List[Dict[str, Any]]:
        issues = []

        if "console.log" in line and self._enabled("no-console"):
            issues.append({
                "line": line_number,
                "column": line.index("console.log") + 1,
                "message": "Unexpected console statement",
                "severity": self._severity("no-console"),
                "rule": "no-console"
            })

        if "var " in line and self._enabled("no-var"):
            issues.append({
                "line": line_number,
                "column": line.index("var ") + 1,
                "message": "Unexpected var, use let or const instead",
                "severity": self._severity("no-var"),
                "rule": "no-var"
            })

        if "==" in line and "===" not in line and "!==" not in line and self._enabled("eqeqeq"):
            issues.append({
                "line": line_number,
                "column": line.index("==") + 1,
                "message": "Expected === and instead saw ==",
                "severity": self._severity("eqeqeq"),
                "rule": "eqeqeq"
            })

        if any(keyword in line for keyword in CONTROL_KEYWORDS) and "{" not in line \
                and self._enabled("curly"):
            issues.append({
                "line": line_number,
                "column": 1,
                "message": "Expected { after control statement",
                "severity": self._severity("curly"),
                "rule": "curly"
            })

        return issues

    def lint_code(self, code: str, filename: str = "untitled.js") -> Dict[str, Any]:
        """Lint a single source text and add the result to the history."""
        issues = []
        for line_number, line in enumerate(code.split("\n"), 1):
            issues.extend(self._lint_line(line, line_number))

        result = {
            "filename": filename,
            "issues": issues,
            "errorCount": len([i for i in issues if i["severity"] == "error"]),
            "warningCount": len([i for i in issues if i["severity"] == "warning"]),
            "timestamp": datetime.now().isoformat()
        }
        self.lint_results.append(result)

        logger.debug("Linted %s: %d issues", filename, len(issues))
        return result

    def lint_files(self, files: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Lint ``{"name", "content"}`` records."""
        self.is_linting = True
        try:
            return [self.lint_code(f.get("content", ""), f.get("name", "untitled.js")) for f in files]
        finally:
            self.is_linting = False

    def get_lint_stats(self) -> Dict[str, Any]:
        stats = {
            "totalFiles": len(self.lint_results),
            "totalIssues": 0,
            "totalErrors": 0,
            "totalWarnings": 0,
            "ruleBreakdown": {}
        }

        for result in self.lint_results:
            stats["totalIssues"] += len(result["issues"])
            stats["totalErrors"] += result["errorCount"]
            stats["totalWarnings"] += result["warningCount"]

            for issue in result["issues"]:
                rule = issue["rule"]
                stats["ruleBreakdown"][rule] = stats["ruleBreakdown"].get(rule, 0) + 1

        return stats

    def update_rules(self, new_rules: Dict[str, str]):
        self.update_settings({"lintRules": new_rules})

    def get_rules(self) -> Dict[str, str]:
        return dict(self.lint_rules)

    def clear_results(self):
        self.lint_results = []

    def _lint_code_action(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(payload.get("code"), str):
            raise ValueError("Missing required payload field: code")
        return self.lint_code(payload["code"], payload.get("filename") or "untitled.js")

    def _lint_files_action(self, payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        require_fields(payload, "files")
        return self.lint_files(payload["files"])

    def _update_rules_action(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        require_fields(payload, "rules")
        self.update_rules(payload["rules"])
        return {"success": True}

    def _clear_results_action(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.clear_results()
        return {"success": True}

    def get_actions(self) -> Dict[str, ActionHandler]:
        return {
            "lintCode": self._lint_code_action,
            "lintFiles": self._lint_files_action,
            "getStats": lambda payload: self.get_lint_stats(),
            "updateRules": self._update_rules_action,
            "getRules": lambda payload: self.get_rules(),
            "clearResults": self._clear_results_action,
        }
