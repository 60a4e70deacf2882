"""Reporting utilities."""

from __future__ import annotations

from itertools import groupby
from pathlib import Path
from typing import Any, Dict, Iterable, List

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from .artifacts import timestamp_now
from .models import DepthSample
from .paths import templates_dir


def _jinja_environment() -> Environment:
    template_path = templates_dir()
    loader = FileSystemLoader(str(template_path)) if template_path.exists() else None
    env = Environment(
        loader=loader,
        autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=False),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.globals["len"] = len
    return env


def _render_template(
    env: Environment,
    template_name: str,
    fallback: str,
    context: Dict[str, Any],
    autoescape: bool = False,
) -> str:
    if env.loader is not None:
        try:
            template = env.get_template(template_name)
            return template.render(**context)
        except TemplateNotFound:
            pass
    if autoescape:
        env = env.overlay(autoescape=True)
    template = env.from_string(fallback)
    return template.render(**context)


def group_by_queue(samples: Iterable[DepthSample]) -> List[Dict[str, Any]]:
    ordered = sorted(samples, key=lambda sample: (sample.queue_name, sample.observed_at))
    return [
        {"name": name, "samples": list(items)}
        for name, items in groupby(ordered, key=lambda sample: sample.queue_name)
    ]


def render_reports(samples: Iterable[DepthSample], destination: Path, title: str = "Queue Depth Report") -> Dict[str, Path]:
    env = _jinja_environment()
    context = {
        "title": title,
        "generated_at": timestamp_now(),
        "queues": group_by_queue(samples),
    }
    markdown = _render_template(env, "report.md.j2", _DEFAULT_MARKDOWN_TEMPLATE, context)
    html = _render_template(env, "report.html.j2", _DEFAULT_HTML_TEMPLATE, context, autoescape=True)
    destination.mkdir(parents=True, exist_ok=True)
    markdown_path = destination / "report.md"
    html_path = destination / "report.html"
    markdown_path.write_text(markdown, encoding="utf-8")
    html_path.write_text(html, encoding="utf-8")
    return {"markdown": markdown_path, "html": html_path}


_DEFAULT_MARKDOWN_TEMPLATE = """# {{ title }}

Generated: {{ generated_at }}

{% if not queues %}
No samples recorded.
{% endif %}
{% for queue in queues -%}
## {{ queue.name }}

| Observed At (UTC) | Depth |
|-------------------|-------|
{% for sample in queue.samples -%}
| {{ sample.observed_at.isoformat() }} | {{ sample.depth }} |
{% endfor %}

{% endfor %}
"""

_DEFAULT_HTML_TEMPLATE = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>{{ title }}</title>
    <style>
      body { font-family: Arial, sans-serif; margin: 2rem; }
      h1, h2 { color: #1f2933; }
      table { border-collapse: collapse; margin-bottom: 1.5rem; width: 100%; }
      th, td { border: 1px solid #d2d6dc; padding: 0.5rem; text-align: left; }
      th { background-color: #f9fafb; }
    </style>
  </head>
  <body>
    <h1>{{ title }}</h1>
    <p>Generated: {{ generated_at }}</p>
    {% if not queues %}
    <p>No samples recorded.</p>
    {% endif %}
    {% for queue in queues %}
    <section>
      <h2>{{ queue.name }} ({{ len(queue.samples) }} samples)</h2>
      <table>
        <thead>
          <tr>
            <th>Observed At (UTC)</th>
            <th>Depth</th>
          </tr>
        </thead>
        <tbody>
          {% for sample in queue.samples %}
          <tr>
            <td>{{ sample.observed_at.isoformat() }}</td>
            <td>{{ sample.depth }}</td>
          </tr>
          {% endfor %}
        </tbody>
      </table>
    </section>
    {% endfor %}
  </body>
</html>
"""
