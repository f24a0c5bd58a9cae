"""Tests for artifact generation."""

import ast
import json

from navigator.artifacts import (
    generate_artifacts,
    render_run_log,
    render_script,
    render_summary,
    screenshot_artifact,
)
from navigator.classifier import classify
from navigator.models import Action, ActionKind, ActionStatus, ArtifactKind, LogEntry, LogStatus

GOAL = "Find a product under $50, add to cart, apply coupon SAVE20, checkout as guest"

LOGS = [
    LogEntry("2026-01-01T00:00:00+00:00", "Goal received", LogStatus.INFO, GOAL),
    LogEntry("2026-01-01T00:00:01+00:00", "click: Click on first product under $50", LogStatus.SUCCESS, "Completed in 12ms"),
    LogEntry("2026-01-01T00:00:02+00:00", "click: Click Add to Cart button", LogStatus.ERROR, "element not found"),
]


def completed(actions):
    return [a.transition(ActionStatus.COMPLETED) for a in actions]


class TestSummary:
    def test_all_completed(self):
        summary = render_summary(GOAL, completed(classify(GOAL)))
        step_lines = [line for line in summary.splitlines() if line[:2] in ("1.", "2.", "3.", "4.")]

        assert len(step_lines) == 4
        assert all(line.endswith("- completed") for line in step_lines)
        assert "**Result**: success" in summary
        assert f"**Goal**: {GOAL}" in summary

    def test_failed_step_shows_reason(self):
        actions = classify(GOAL)
        actions[1] = actions[1].transition(ActionStatus.FAILED, reason="element not found")
        summary = render_summary(GOAL, actions)

        assert "2. click: Click Add to Cart button - failed (element not found)" in summary
        assert "**Result**: failed" in summary

    def test_zero_actions(self):
        summary = render_summary("", [])
        assert "**Actions Executed**: 0" in summary
        assert "**Result**: nothing to execute" in summary


class TestScript:
    def test_placeholders_are_valid_python(self):
        script = render_script(classify(GOAL))
        ast.parse(script)
        assert "page.click('#selector-1')" in script
        assert "page.fill('#selector-3', 'SAVE20')" in script

    def test_resolved_locator_used(self):
        action = classify(GOAL)[1].transition(ActionStatus.COMPLETED, locator='text="Add to Cart"')
        script = render_script([action], "https://shop.test")
        assert "page.goto('https://shop.test')" in script
        assert "page.click('text=\"Add to Cart\"')" in script

    def test_awkward_values_stay_valid(self):
        actions = [
            Action("1", ActionKind.TYPE, "Type it's \"quoted\"\nnew line", 1, value="O'Brien \"x\" \\"),
            Action("2", ActionKind.WAIT, "Wait", 2, value="750"),
            Action("3", ActionKind.SCROLL, "Scroll", 3),
            Action("4", ActionKind.NAVIGATE, "Go", 4, value="https://a.test/?q='1'"),
            Action("5", ActionKind.SELECT, "Pick", 5, value="L"),
        ]
        script = render_script(actions)
        ast.parse(script)
        assert "page.wait_for_timeout(750)" in script
        assert "page.mouse.wheel(0, 300)" in script

    def test_empty_plan(self):
        ast.parse(render_script([]))

    def test_numeric_values_match_execution(self):
        actions = [
            Action("1", ActionKind.WAIT, "Wait", 1, value="1.5"),
            Action("2", ActionKind.WAIT, "Wait", 2, value="\u00b2"),
            Action("3", ActionKind.SCROLL, "Scroll", 3, value="9" * 400),
        ]
        script = render_script(actions)
        ast.parse(script)
        assert "page.wait_for_timeout(1)" in script
        assert "page.wait_for_timeout(1000)" in script
        assert f"page.mouse.wheel(0, {actions[2].scroll_px})" in script


class TestRunLog:
    def test_chronological_json(self):
        records = json.loads(render_run_log(LOGS))
        assert [r["action"] for r in records] == [e.action for e in LOGS]
        assert records[2] == {
            "timestamp": "2026-01-01T00:00:02+00:00",
            "action": "click: Click Add to Cart button",
            "status": "error",
            "details": "element not found",
        }

    def test_empty(self):
        assert json.loads(render_run_log([])) == []


class TestGenerateArtifacts:
    def test_three_artifacts(self):
        artifacts = generate_artifacts(GOAL, completed(classify(GOAL)), LOGS)
        assert [a.kind for a in artifacts] == [ArtifactKind.SUMMARY, ArtifactKind.SCRIPT, ArtifactKind.RUN_LOG]
        assert [a.filename for a in artifacts] == ["execution-summary.md", "workflow_test.py", "run-log.json"]

    def test_idempotent(self):
        actions = completed(classify(GOAL))
        assert generate_artifacts(GOAL, actions, LOGS) == generate_artifacts(GOAL, actions, LOGS)

    def test_screenshot_artifact(self):
        artifact = screenshot_artifact(b"\x89PNG")
        assert artifact.kind == ArtifactKind.SCREENSHOT
        assert artifact.content == "iVBORw=="
