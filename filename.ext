[file content here]
=== END FILE ==="""


def build_validator_prompt(files: List[Dict[str, Any]], names: List[str]) -> str:
    return f"""<files_to_validate>
{json.dumps(files, indent=2)}
</files_to_validate>

<package_contents>
Files in package: {', '.join(names)}
Total files: {len(names)}
</package_contents>

Validate this HTML documentation package and provide a validation report as \
structured JSON matching the format in your instructions."""


def build_planning_prompt(screenshot_size: int, context: Dict[str, Any]) -> str:
    return f"""Analyze this screenshot documentation request and create an execution plan.

Screenshot size: {screenshot_size} bytes
User context: {json.dumps(context, indent=2)}

Determine the complexity level:
- simple: <20 elements, basic interface
- medium: 20-50 elements, moderate complexity
- complex: >50 elements, professional application

Respond with one JSON object:
{{
  "complexity": "simple|medium|complex",
  "estimated_elements": 0,
  "estimated_time": 0,
  "estimated_cost": 0.0
}}"""
