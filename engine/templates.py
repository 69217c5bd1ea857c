"""
Mains Test Templates

Standard step plans an engineer can start a test from. Every plan opens
with an index-0 "all closed" step so static pressure can be measured,
then opens outlets (or holds a target flow) step by step.

Templates:
- outlets-0-1-2-3: all closed, then 1, 2 and 3 outlets
- flow-sweep: all closed, then one outlet held at 5/10/15/20 L/min
- quick-2-outlet: all closed, 1 outlet, 2 outlets
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.models import MainsTestStep


STATIC_STEP_LABEL = "All closed (static)"


@dataclass
class StepTemplate:
    """One step of a template, without ids."""
    index: int
    label: str
    outlet_count: int
    target_flow_lpm: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "label": self.label,
            "outlet_count": self.outlet_count,
            "target_flow_lpm": self.target_flow_lpm,
        }


@dataclass
class MainsTestTemplate:
    """
    A named step plan.

    Attributes:
        id: Stable template identifier (e.g. "flow-sweep")
        name: Display name
        description: What the plan measures
        steps: Steps in the order they are performed
    """
    id: str
    name: str
    description: str
    steps: List[StepTemplate] = field(default_factory=list)

    def build_steps(self, test_id: str) -> List[MainsTestStep]:
        """
        Instantiate the template as step records for one test.

        Step ids are derived from the test id and step index, so the same
        test id always yields the same step ids.
        """
        return [
            MainsTestStep(
                id=f"{test_id}-step-{s.index}",
                index=s.index,
                label=s.label,
                outlet_count=s.outlet_count,
                target_flow_lpm=s.target_flow_lpm,
                test_id=test_id,
            )
            for s in self.steps
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "steps": [s.to_dict() for s in self.steps],
        }


class TemplateLibrary:
    """
    Library of standard mains test step plans.

    Usage:
        template = TemplateLibrary.get_template("quick-2-outlet")
        steps = template.build_steps(test_id="T-001")
    """

    @staticmethod
    def outlets_0_1_2_3() -> MainsTestTemplate:
        """Standard test: progressively open up to three outlets."""
        return MainsTestTemplate(
            id="outlets-0-1-2-3",
            name="0-1-2-3 Outlets",
            description="Standard test: all closed, then progressively open 1, 2, 3 outlets",
            steps=[
                StepTemplate(0, STATIC_STEP_LABEL, 0),
                StepTemplate(1, "Outlet 1 open", 1),
                StepTemplate(2, "Outlet 1+2 open", 2),
                StepTemplate(3, "Outlet 1+2+3 open", 3),
            ],
        )

    @staticmethod
    def flow_sweep() -> MainsTestTemplate:
        """Controlled flow test through a single outlet."""
        steps = [StepTemplate(0, STATIC_STEP_LABEL, 0)]
        for i, flow in enumerate([5.0, 10.0, 15.0, 20.0], start=1):
            steps.append(StepTemplate(i, f"Hold at {flow:.0f} L/min", 1, target_flow_lpm=flow))

        return MainsTestTemplate(
            id="flow-sweep",
            name="Flow Sweep",
            description="Test at controlled flow rates: 5, 10, 15, 20 L/min",
            steps=steps,
        )

    @staticmethod
    def quick_2_outlet() -> MainsTestTemplate:
        """Fast test for a quick site visit."""
        return MainsTestTemplate(
            id="quick-2-outlet",
            name="Quick 2-Outlet Test",
            description="Fast test: static, 1 outlet, 2 outlets",
            steps=[
                StepTemplate(0, STATIC_STEP_LABEL, 0),
                StepTemplate(1, "Outlet 1 open", 1),
                StepTemplate(2, "Outlet 1+2 open", 2),
            ],
        )

    @classmethod
    def get_all_templates(cls) -> List[MainsTestTemplate]:
        """Return all templates in display order."""
        return [
            cls.outlets_0_1_2_3(),
            cls.flow_sweep(),
            cls.quick_2_outlet(),
        ]

    @classmethod
    def get_template(cls, template_id: str) -> Optional[MainsTestTemplate]:
        """
        Get a template by id.

        Returns:
            MainsTestTemplate or None if the id is unknown
        """
        for template in cls.get_all_templates():
            if template.id == template_id:
                return template
        return None
