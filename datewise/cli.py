from __future__ import annotations
import argparse
import asyncio
import json
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

try:
    from .errors import InterpreterError
    from .fallback import fallback_interpreter
    from .interpreter import DateInterpreter
    from .providers.ollama import OllamaProvider
    from .providers.registry import ProviderRegistry
    from .settings import configure_logging, get_settings
    from .utils import format_instant_for_display, parse_instant
except ImportError:
    from datewise.errors import InterpreterError
    from datewise.fallback import fallback_interpreter
    from datewise.interpreter import DateInterpreter
    from datewise.providers.ollama import OllamaProvider
    from datewise.providers.registry import ProviderRegistry
    from datewise.settings import configure_logging, get_settings
    from datewise.utils import format_instant_for_display, parse_instant


def _build_config(registry: ProviderRegistry, provider_id: str, base_url: Optional[str], model: Optional[str]) -> Any:
    provider = registry.get(provider_id)
    cfg: Dict[str, Any] = provider.default_config.model_dump()
    # overrides only apply to providers whose config has these fields
    if base_url is not None and "base_url" in cfg:
        cfg["base_url"] = base_url
    if model is not None and "model" in cfg:
        cfg["model"] = model
    return cfg


def cmd_interpret(
    registry: ProviderRegistry,
    text: str,
    *,
    provider_id: str,
    base_url: Optional[str] = None,
    model: Optional[str] = None,
    timezone: Optional[str] = None,
    now: Optional[str] = None,
    as_json: bool = False,
) -> int:
    ref: Optional[datetime] = None
    if now:
        ref = parse_instant(now)
        if ref is None:
            print(f"--now must be an ISO 8601 instant with offset: {now}", file=sys.stderr)
            return 2
    interpreter = DateInterpreter(registry.as_mapping(), fallback=fallback_interpreter)
    try:
        cfg = _build_config(registry, provider_id, base_url, model)
        result = asyncio.run(
            interpreter.interpret_date(provider_id, cfg, text, timezone=timezone, now=ref)
        )
    except InterpreterError as e:
        print(f"Interpretation failed: {e}", file=sys.stderr)
        return 1

    instant = parse_instant(result.value)
    if instant is None:
        print(f"Invalid date returned by {result.provider_id.value}: {result.value}", file=sys.stderr)
        return 1

    if as_json:
        print(json.dumps(result.to_dict(include_raw=False), indent=2))
    else:
        print(result.value)
        print(f"  {format_instant_for_display(instant, timezone)} (via {result.provider_id.value})")
        if result.reasoning:
            print(f"  {result.reasoning}")
    return 0


def cmd_providers(registry: ProviderRegistry) -> int:
    rows = [
        (p.id.value, p.name, "yes" if registry.is_configured(p) else "no", "yes" if p.available else "no")
        for p in registry.list()
    ]
    w = max(len(r[0]) for r in rows)
    n = max(len(r[1]) for r in rows)
    header = f"{'ID'.ljust(w)}  {'NAME'.ljust(n)}  CONFIGURED  AVAILABLE"
    print(header)
    print("-" * len(header))
    for pid, name, configured, available in rows:
        print(f"{pid.ljust(w)}  {name.ljust(n)}  {configured.ljust(10)}  {available}")
    return 0


def cmd_models(registry: ProviderRegistry, base_url: Optional[str] = None) -> int:
    provider = registry.get("ollama")
    if not isinstance(provider, OllamaProvider):
        print("Ollama provider is not registered", file=sys.stderr)
        return 1
    models = asyncio.run(provider.list_models(base_url))
    if not models:
        print("No models found")
        return 0
    for m in models:
        print(m.name)
    return 0


def build_parser() -> argparse.ArgumentParser:
    s = get_settings()
    p = argparse.ArgumentParser(prog="datewise-cli", description="Natural-language date interpreter")
    p.add_argument("command", choices=["interpret", "providers", "models"], help="CLI command")
    p.add_argument("text", nargs="?", default=None, help="Date expression (for interpret)")
    p.add_argument("--provider", dest="provider", default=s["DEFAULT_PROVIDER"], help="Provider id (default: %(default)s)")
    p.add_argument("--base-url", dest="base_url", default=None, help="Override the provider base URL")
    p.add_argument("--model", dest="model", default=None, help="Override the provider model")
    p.add_argument("--timezone", dest="timezone", default=None, help="IANA timezone (default: local)")
    p.add_argument("--now", dest="now", default=None, help="Reference instant, ISO 8601 with offset")
    p.add_argument("--json", dest="as_json", action="store_true", help="Print the result as JSON")
    p.add_argument("--log-level", dest="log_level", default=None, help="Logging level (default: LOG_LEVEL or INFO)")
    return p


def main(argv: List[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    registry = ProviderRegistry()
    if args.command == "interpret":
        if not args.text:
            print("TEXT is required for interpret", file=sys.stderr)
            return 2
        return cmd_interpret(
            registry,
            args.text,
            provider_id=args.provider,
            base_url=args.base_url,
            model=args.model,
            timezone=args.timezone,
            now=args.now,
            as_json=args.as_json,
        )
    if args.command == "providers":
        return cmd_providers(registry)
    if args.command == "models":
        return cmd_models(registry, args.base_url)
    parser.print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
