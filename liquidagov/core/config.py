from __future__ import annotations

import copy
import json
import os
from dataclasses import dataclass
from typing import Any, Dict

import yaml
from dotenv import load_dotenv

DEFAULT_WORKFLOW_PATH = "configs/workflow.json"
DEFAULT_GATEWAYS_PATH = "configs/gateways.yaml"

DEFAULT_WORKFLOW: Dict[str, Any] = {
    "workflow_name": "LiquidationWorkflow",
    "stages": [
        {"id": "UPLOAD", "label": "Documentos"},
        {"id": "DATA_ENTRY", "label": "Dados"},
        {"id": "REVIEW", "label": "Liquidação"},
    ],
    "config": {
        "settle_delay_seconds": 1.0,
        "default_destination": "pagamentos@exemplo.gov.br",
        "currency_policy": "lenient",
    },
}

DEFAULT_GATEWAYS: Dict[str, Any] = {
    "extraction": {"provider": "static", "model": "gpt-4o-mini", "payload": {}},
    "dispatch": {"channel": "outbox"},
}


@dataclass
class Settings:
    workflow: Dict[str, Any]
    gateways: Dict[str, Any]
    env: Dict[str, str]

    @property
    def workflow_config(self) -> Dict[str, Any]:
        return self.workflow.get("config", {})

    @property
    def settle_delay(self) -> float:
        return float(self.workflow_config.get("settle_delay_seconds", 1.0))

    @property
    def default_destination(self) -> str:
        value = str(self.workflow_config.get("default_destination") or "")
        if not value or value.startswith("{{"):
            return DEFAULT_WORKFLOW["config"]["default_destination"]
        return value

    @property
    def log_level(self) -> str:
        return self.env.get("LOG_LEVEL", "INFO")

    @property
    def log_format(self) -> str:
        return self.env.get("LOG_FORMAT", "json")

    @property
    def currency_policy(self) -> str:
        return str(self.workflow_config.get("currency_policy", "lenient"))


def _load_json(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _load_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def _merge(defaults: Dict[str, Any], loaded: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(defaults)
    for key, value in loaded.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _resolve_config_refs(obj: Any, env: Dict[str, str]) -> Any:
    if isinstance(obj, dict):
        return {k: _resolve_config_refs(v, env) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_resolve_config_refs(v, env) for v in obj]
    if isinstance(obj, str) and obj.startswith("{{") and obj.endswith("}}"):
        key = obj[2:-2].strip()
        return env.get(key, obj)
    return obj


def load_settings(
    workflow_path: str | None = None,
    gateways_path: str | None = None,
) -> Settings:
    load_dotenv()
    env = dict(os.environ)

    workflow_path = workflow_path or env.get("WORKFLOW_CONFIG", DEFAULT_WORKFLOW_PATH)
    gateways_path = gateways_path or env.get("GATEWAYS_CONFIG", DEFAULT_GATEWAYS_PATH)

    workflow = DEFAULT_WORKFLOW
    if os.path.exists(workflow_path):
        workflow = _merge(DEFAULT_WORKFLOW, _load_json(workflow_path))
    workflow = _resolve_config_refs(workflow, env)

    gateways = DEFAULT_GATEWAYS
    if os.path.exists(gateways_path):
        gateways = _merge(DEFAULT_GATEWAYS, _load_yaml(gateways_path))
    gateways = _resolve_config_refs(gateways, env)

    return Settings(workflow=workflow, gateways=gateways, env=env)
