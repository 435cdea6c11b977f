# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Resource templates and their rendering into Kubernetes documents."""

from __future__ import annotations

from dataclasses import dataclass

import yaml
from jinja2 import Environment, StrictUndefined, TemplateSyntaxError, UndefinedError

from kafka_scaler_e2e.config import ScenarioParameters
from kafka_scaler_e2e.errors import TemplateError

_ENV = Environment(
    undefined=StrictUndefined,
    keep_trailing_newline=True,
    autoescape=False,
)


@dataclass(frozen=True)
class ResourceTemplate:
    """A named template body; the name is its identity and log label."""

    name: str
    body: str


@dataclass(frozen=True)
class RenderedResource:
    """A template rendered against a parameter set.

    Attributes:
        template_name: Name of the source template.
        document: Substituted YAML text, handed whole to kubectl.
        kind: ``kind`` of the document, for logging and tracking.
        name: ``metadata.name`` of the document, for logging and tracking.
    """

    template_name: str
    document: str
    kind: str
    name: str

    @property
    def ref(self) -> str:
        return f"{self.kind.lower()}/{self.name}"


def render(template: ResourceTemplate, parameters: ScenarioParameters) -> RenderedResource:
    """Substitute *parameters* into *template*.

    Text outside placeholders is preserved exactly. Empty parameter values
    render as empty strings.

    Args:
        template: Template to render.
        parameters: Values for the template's placeholders.

    Returns:
        The rendered resource.

    Raises:
        TemplateError: If a placeholder names an unknown field, the template
            has a syntax error, or the output is not a YAML mapping.
    """
    try:
        document = _ENV.from_string(template.body).render(parameters.as_context())
    except UndefinedError as err:
        raise TemplateError(f"template '{template.name}' references an unknown field: {err.message}") from err
    except TemplateSyntaxError as err:
        raise TemplateError(f"template '{template.name}' is malformed (line {err.lineno}): {err.message}") from err

    try:
        parsed = yaml.safe_load(document)
    except yaml.YAMLError as err:
        raise TemplateError(f"template '{template.name}' did not render valid YAML: {err}") from err
    if not isinstance(parsed, dict):
        raise TemplateError(f"template '{template.name}' did not render a YAML mapping")

    metadata = parsed.get("metadata") or {}
    return RenderedResource(
        template_name=template.name,
        document=document,
        kind=str(parsed.get("kind", "")),
        name=str(metadata.get("name", "")),
    )
