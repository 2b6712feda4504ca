"""
Automation curve helpers.

Points are kept sorted by `t`. Evaluation clamps to the first/last point
outside the curve's span.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from dmosh.project.models import AutomationCurve, AutomationPoint, Project


def insert_point(points: List[AutomationPoint], point: AutomationPoint) -> List[AutomationPoint]:
    return sorted([*points, point], key=lambda p: p.t)


def update_point(points: List[AutomationPoint], index: int, point: AutomationPoint) -> List[AutomationPoint]:
    updated = [point if idx == index else existing for idx, existing in enumerate(points)]
    return sorted(updated, key=lambda p: p.t)


def evaluate_curve(curve: AutomationCurve, t: float) -> Optional[float]:
    points = sorted(curve.points, key=lambda p: p.t)
    if not points:
        return None
    if t <= points[0].t:
        return points[0].value
    if t >= points[-1].t:
        return points[-1].value

    for left, right in zip(points, points[1:]):
        if left.t <= t <= right.t:
            if curve.interpolation == "step" or right.t == left.t:
                return left.value
            u = (t - left.t) / (right.t - left.t)
            if curve.interpolation == "smooth":
                u = u * u * (3 - 2 * u)
            return left.value + (right.value - left.value) * u
    return points[-1].value


def resolve_operation_params(project: Project, operation_id: str, t: float) -> Dict[str, float]:
    """Automated parameter values of one operation at time t."""
    values: Dict[str, float] = {}
    for curve in project.automation_curves:
        if curve.target.operation_id != operation_id:
            continue
        value = evaluate_curve(curve, t)
        if value is not None:
            values[curve.target.param] = value
    return values
