#!/usr/bin/env python3
from __future__ import annotations

import importlib
import json
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fastapi.testclient import TestClient


@dataclass
class Scenario:
  name: str
  message: str
  expected_tool: str | None
  user_id: int = 1


def read_events(body: str) -> list[dict[str, Any]]:
  """Decode the JSON `data:` payload of every SSE frame in a /chat response."""
  payloads: list[dict[str, Any]] = []
  for frame in body.replace("\r\n", "\n").split("\n\n"):
    data = next((line[len("data: "):] for line in frame.splitlines() if line.startswith("data: ")), None)
    if data is None:
      continue
    try:
      payloads.append(json.loads(data))
    except json.JSONDecodeError:
      payloads.append({"type": "unparsed", "raw": data})
  return payloads


def run() -> int:
  repo_root = Path(__file__).resolve().parents[1]
  backend_dir = repo_root / "backend"
  if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

  backend_module = importlib.import_module("main")
  if not backend_module.container.backend.configured:
    print("OPENAI_API_KEY is not set; the smoke run needs a live model backend.")
    return 2

  scenarios = [
    Scenario(name="Medication Lookup", message="Tell me about Aspirin", expected_tool="lookup_medication"),
    Scenario(name="Stock Check", message="Is Ibuprofen in stock?", expected_tool="check_availability"),
    Scenario(
      name="Prescription Check",
      message="Do I have a prescription for Amoxicillin?",
      expected_tool="check_prescription",
      user_id=1,
    ),
    Scenario(name="Catalog In Hebrew", message="אילו תרופות יש לכם?", expected_tool="list_medications"),
    Scenario(name="Medical Advice Redirect", message="Should I take Aspirin for my headache?", expected_tool=None),
  ]

  results: list[dict[str, Any]] = []
  with TestClient(backend_module.app) as client:
    for scenario in scenarios:
      response = client.post(
        "/chat",
        json={"message": scenario.message, "user_id": scenario.user_id, "history": []},
      )
      result: dict[str, Any] = {"name": scenario.name, "status_code": response.status_code}
      if response.status_code != 200:
        result["pass"] = False
        result["error"] = f"/chat returned {response.status_code}"
        results.append(result)
        continue

      payloads = read_events(response.text)
      tools = [item["data"]["name"] for item in payloads if item.get("type") == "tool_call"]
      text = "".join(item.get("data", "") for item in payloads if item.get("type") == "text")
      terminal = payloads[-1].get("type") if payloads else None

      result["tools"] = sorted(set(tools))
      result["preview"] = text[:240]
      result["terminal"] = terminal
      if scenario.expected_tool is None:
        result["pass"] = not tools and terminal == "done"
      else:
        result["pass"] = scenario.expected_tool in tools and terminal == "done"
      if not result["pass"]:
        result["error"] = f"Expected tool {scenario.expected_tool!r}, saw {result['tools']} ending in {terminal!r}"
      results.append(result)

  passed = sum(1 for item in results if item.get("pass"))
  report_lines = [
    "# Pharmacy Chat Smoke Report",
    "",
    f"- Timestamp (UTC): `{datetime.now(timezone.utc).isoformat()}`",
    f"- Model: `{os.getenv('PHARMACY_CHAT_MODEL', 'gpt-4o')}`",
    f"- Passed: `{passed}/{len(results)}`",
    "",
  ]
  for item in results:
    status = "PASS" if item.get("pass") else "FAIL"
    report_lines.append(f"### {status} - {item['name']}")
    report_lines.append(f"- Tools called: `{item.get('tools')}`")
    report_lines.append(f"- Terminal event: `{item.get('terminal')}`")
    if item.get("error"):
      report_lines.append(f"- Error: `{item['error']}`")
    if item.get("preview"):
      report_lines.append(f"- Reply preview: {item['preview']}")
    report_lines.append("")

  report_path = repo_root / "CHAT_SMOKE_REPORT.md"
  report_path.write_text("\n".join(report_lines), encoding="utf-8")
  print(f"Wrote report: {report_path}")
  print(f"Passed {passed}/{len(results)} scenarios.")
  return 0 if passed == len(results) else 1


if __name__ == "__main__":
  raise SystemExit(run())
