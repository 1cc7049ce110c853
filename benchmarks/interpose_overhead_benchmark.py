"""Performance benchmark for direct calls vs calls through interpose proxies."""

import abc
import argparse
import json
import pathlib
import statistics
import sys
import time
from collections.abc import Callable
from typing import Literal
from typing import TypeVar

REPO_ROOT: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
BenchmarkMode = Literal["direct", "interpose"]
CaseRunner = Callable[["BenchmarkMode", int], dict[str, object]]

_CASE_ORDER: list[str] = [
    "cold_type_synthesis",
    "cached_proxy_creation",
    "scalar_call",
    "keyword_call",
    "deep_chain_call",
    "interface_with_target_call",
    "by_ref_call",
    "generic_call",
]

_CASE_DESCRIPTIONS: dict[str, str] = {
    "cold_type_synthesis": "Build a proxy type from scratch with a fresh registry on every iteration.",
    "cached_proxy_creation": "Create a proxy instance whose type is already cached.",
    "scalar_call": "Class proxy call with two positional scalar arguments and one passthrough interceptor.",
    "keyword_call": "Class proxy call bound by keyword.",
    "deep_chain_call": "Class proxy call through a chain of eight passthrough interceptors.",
    "interface_with_target_call": "Interface proxy call forwarded to a separate target.",
    "by_ref_call": "Interface proxy call with a by-reference parameter copied back to the caller.",
    "generic_call": "Interface proxy call of a generic member with per-call type arguments.",
}

_CASE_DEFAULT_ITERATIONS: dict[str, int] = {
    "cold_type_synthesis": 200,
    "cached_proxy_creation": 20_000,
    "scalar_call": 50_000,
    "keyword_call": 50_000,
    "deep_chain_call": 20_000,
    "interface_with_target_call": 50_000,
    "by_ref_call": 30_000,
    "generic_call": 30_000,
}

_CASE_QUICK_ITERATIONS: dict[str, int] = {
    "cold_type_synthesis": 20,
    "cached_proxy_creation": 2_000,
    "scalar_call": 5_000,
    "keyword_call": 5_000,
    "deep_chain_call": 2_000,
    "interface_with_target_call": 5_000,
    "by_ref_call": 3_000,
    "generic_call": 3_000,
}

T = TypeVar("T")


def _ensure_repo_paths() -> None:
    """Ensure repository-local imports are resolvable for this process."""
    src_path: str = str(REPO_ROOT / "src")
    has_src_path: bool = src_path in sys.path
    if has_src_path is False:
        sys.path.insert(0, src_path)


_ensure_repo_paths()

from interpose import Out  # noqa: E402
from interpose import ProxyGenerator  # noqa: E402
from interpose import ProxyRegistry  # noqa: E402
from interpose import StandardInterceptor  # noqa: E402
from interpose import generic_method  # noqa: E402


class Counter:
    """Workload class proxied by the class-proxy cases."""

    total: int

    def __init__(self) -> None:
        """Start counting at zero."""
        self.total = 0

    def add(self, left: int, right: int) -> int:
        """Count the call and add two integers.

        :param left: Left operand.
        :param right: Right operand.
        :returns: Sum.
        """
        self.total += 1
        return left + right


class Lookup(abc.ABC):
    """Interface proxied by the interface-proxy cases."""

    @abc.abstractmethod
    def find(self, key: str) -> int: ...

    @abc.abstractmethod
    def try_find(self, key: str, result: Out[int]) -> bool: ...

    @generic_method(T)
    @abc.abstractmethod
    def convert(self, value: object, *, type_args: tuple[type, ...]) -> object: ...


class DictLookup(Lookup):
    """Dictionary-backed ``Lookup`` implementation."""

    _values: dict[str, int]

    def __init__(self) -> None:
        """Initialize a small fixed table."""
        self._values = {"alpha": 1, "beta": 2, "gamma": 3}

    def find(self, key: str) -> int:
        """Return the value stored under ``key``.

        :param key: Table key.
        :returns: Stored value.
        """
        return self._values[key]

    def try_find(self, key: str, result: Out[int]) -> bool:
        """Write the value stored under ``key`` into ``result``.

        :param key: Table key.
        :param result: Cell receiving the value.
        :returns: ``True`` when the key exists.
        """
        if key not in self._values:
            return False
        result.value = self._values[key]
        return True

    @generic_method(T)
    def convert(self, value: object, *, type_args: tuple[type, ...]) -> object:
        """Convert ``value`` to the requested type.

        :param value: Value to convert.
        :param type_args: Target type.
        :returns: Converted value.
        """
        return type_args[0](value)


def _counter(mode: BenchmarkMode, generator: ProxyGenerator, depth: int = 1) -> Counter:
    """Return a plain counter or a class proxy over one.

    :param mode: Execution mode.
    :param generator: Generator used in proxied mode.
    :param depth: Number of passthrough interceptors.
    :returns: Counter or counter proxy.
    """
    if mode == "direct":
        return Counter()
    interceptors: list[StandardInterceptor] = [StandardInterceptor() for _ in range(depth)]
    return generator.create_class_proxy(Counter, interceptors)  # type: ignore[return-value]


def _lookup(mode: BenchmarkMode, generator: ProxyGenerator) -> Lookup:
    """Return a plain lookup or an interface proxy forwarding to one.

    :param mode: Execution mode.
    :param generator: Generator used in proxied mode.
    :returns: Lookup or lookup proxy.
    """
    target: DictLookup = DictLookup()
    if mode == "direct":
        return target
    return generator.create_interface_proxy_with_target(Lookup, target, [StandardInterceptor()])  # type: ignore[return-value]


def _run_case_cold_type_synthesis(mode: BenchmarkMode, iterations: int) -> dict[str, object]:
    """Run the cold type-synthesis regime.

    :param mode: Execution mode.
    :param iterations: Number of timed iterations.
    :returns: Summary dictionary.
    """
    created: int = 0
    for _ in range(iterations):
        generator: ProxyGenerator = ProxyGenerator(registry=ProxyRegistry())
        _counter(mode, generator)
        created += 1
    return {"created": created}


def _run_case_cached_proxy_creation(mode: BenchmarkMode, iterations: int) -> dict[str, object]:
    """Run the cached proxy-creation regime.

    :param mode: Execution mode.
    :param iterations: Number of timed iterations.
    :returns: Summary dictionary.
    """
    generator: ProxyGenerator = ProxyGenerator()
    _counter(mode, generator)
    created: int = 0
    for _ in range(iterations):
        _counter(mode, generator)
        created += 1
    return {"created": created}


def _run_case_scalar_call(mode: BenchmarkMode, iterations: int) -> dict[str, object]:
    """Run repeated positional scalar calls.

    :param mode: Execution mode.
    :param iterations: Number of timed iterations.
    :returns: Summary dictionary.
    """
    counter: Counter = _counter(mode, ProxyGenerator())
    checksum: int = 0
    for index in range(iterations):
        checksum += counter.add(index, 1)
    return {"checksum": checksum, "total": counter.total}


def _run_case_keyword_call(mode: BenchmarkMode, iterations: int) -> dict[str, object]:
    """Run repeated keyword-bound calls.

    :param mode: Execution mode.
    :param iterations: Number of timed iterations.
    :returns: Summary dictionary.
    """
    counter: Counter = _counter(mode, ProxyGenerator())
    checksum: int = 0
    for index in range(iterations):
        checksum += counter.add(right=1, left=index)
    return {"checksum": checksum, "total": counter.total}


def _run_case_deep_chain_call(mode: BenchmarkMode, iterations: int) -> dict[str, object]:
    """Run repeated calls through a deep interceptor chain.

    :param mode: Execution mode.
    :param iterations: Number of timed iterations.
    :returns: Summary dictionary.
    """
    counter: Counter = _counter(mode, ProxyGenerator(), depth=8)
    checksum: int = 0
    for index in range(iterations):
        checksum += counter.add(index, 2)
    return {"checksum": checksum}


def _run_case_interface_with_target_call(mode: BenchmarkMode, iterations: int) -> dict[str, object]:
    """Run repeated interface calls forwarded to a target.

    :param mode: Execution mode.
    :param iterations: Number of timed iterations.
    :returns: Summary dictionary.
    """
    lookup: Lookup = _lookup(mode, ProxyGenerator())
    keys: tuple[str, ...] = ("alpha", "beta", "gamma")
    checksum: int = 0
    for index in range(iterations):
        checksum += lookup.find(keys[index % 3])
    return {"checksum": checksum}


def _run_case_by_ref_call(mode: BenchmarkMode, iterations: int) -> dict[str, object]:
    """Run repeated calls with a by-reference parameter.

    :param mode: Execution mode.
    :param iterations: Number of timed iterations.
    :returns: Summary dictionary.
    """
    lookup: Lookup = _lookup(mode, ProxyGenerator())
    checksum: int = 0
    for _ in range(iterations):
        result: Out[int] = Out()
        if lookup.try_find("beta", result) is True:
            checksum += result.value or 0
    return {"checksum": checksum}


def _run_case_generic_call(mode: BenchmarkMode, iterations: int) -> dict[str, object]:
    """Run repeated generic calls with per-call type arguments.

    :param mode: Execution mode.
    :param iterations: Number of timed iterations.
    :returns: Summary dictionary.
    """
    lookup: Lookup = _lookup(mode, ProxyGenerator())
    checksum: int = 0
    for index in range(iterations):
        converted: object = lookup.convert[int](str(index % 10))  # type: ignore[index]
        checksum += converted  # type: ignore[operator]
    return {"checksum": checksum}


_CASE_RUNNERS: dict[str, CaseRunner] = {
    "cold_type_synthesis": _run_case_cold_type_synthesis,
    "cached_proxy_creation": _run_case_cached_proxy_creation,
    "scalar_call": _run_case_scalar_call,
    "keyword_call": _run_case_keyword_call,
    "deep_chain_call": _run_case_deep_chain_call,
    "interface_with_target_call": _run_case_interface_with_target_call,
    "by_ref_call": _run_case_by_ref_call,
    "generic_call": _run_case_generic_call,
}


def _plan_iterations(cases_arg: str | None, base_iterations: dict[str, int], scale: float) -> dict[str, int]:
    """Map each selected case, in run order, to its scaled iteration count.

    Cases always run in the canonical order so results stay comparable across
    invocations, whatever order they were requested in.

    :param cases_arg: Optional comma-separated case names; ``None`` selects every case.
    :param base_iterations: Unscaled iteration counts by case.
    :param scale: Positive scale multiplier; every case keeps at least one iteration.
    :returns: Iteration counts keyed by case name.
    :raises ValueError: If unknown case names are requested or nothing is selected.
    """
    requested: set[str] = set(_CASE_ORDER)
    if cases_arg is not None:
        requested = {part.strip() for part in cases_arg.split(",")} - {""}
    unknown: list[str] = sorted(requested - set(_CASE_RUNNERS))
    if len(unknown) > 0:
        raise ValueError(f"Unknown case(s): {', '.join(unknown)}")
    if len(requested) == 0:
        raise ValueError("No benchmark cases selected")
    return {
        case_name: max(1, int(base_iterations[case_name] * scale))
        for case_name in _CASE_ORDER
        if case_name in requested
    }


def _time_case(case_name: str, mode: BenchmarkMode, iterations: int, repetitions: int) -> tuple[dict[str, float], dict[str, object]]:
    """Run one case repeatedly and aggregate its timings.

    :param case_name: Case name.
    :param mode: Execution mode.
    :param iterations: Timed iterations per repetition.
    :param repetitions: Number of repetitions.
    :returns: Tuple of ``(stats, summary_of_first_repetition)``.
    """
    runner: CaseRunner = _CASE_RUNNERS[case_name]
    timings: list[float] = []
    first_summary: dict[str, object] | None = None
    for _ in range(repetitions):
        started: float = time.perf_counter()
        summary: dict[str, object] = runner(mode, iterations)
        timings.append(time.perf_counter() - started)
        if first_summary is None:
            first_summary = summary
    if first_summary is None:
        raise ValueError(f"Missing summary for {case_name}/{mode}")

    median_seconds: float = statistics.median(timings)
    stats: dict[str, float] = {
        "median_seconds": median_seconds,
        "mean_seconds": statistics.mean(timings),
        "min_seconds": min(timings),
        "max_seconds": max(timings),
        "median_us_per_op": median_seconds * 1_000_000.0 / iterations,
    }
    return stats, first_summary


def _render_table(
    case_names: list[str],
    iteration_map: dict[str, int],
    direct_stats: dict[str, dict[str, float]],
    interpose_stats: dict[str, dict[str, float]],
) -> str:
    """Render a summary table of benchmark results.

    :param case_names: Ordered case names.
    :param iteration_map: Iteration counts by case.
    :param direct_stats: Direct-mode aggregated stats by case.
    :param interpose_stats: Proxied-mode aggregated stats by case.
    :returns: Rendered table text.
    """
    header: str = (
        "Case                         Iter   Direct(ms)   Interpose(ms)   "
        "Slowdown   Direct(us/op)   Interpose(us/op)"
    )
    lines: list[str] = [header, "-" * len(header)]
    for case_name in case_names:
        iterations: int = iteration_map[case_name]
        direct_median_ms: float = direct_stats[case_name]["median_seconds"] * 1_000.0
        interpose_median_ms: float = interpose_stats[case_name]["median_seconds"] * 1_000.0
        slowdown_x: float = interpose_stats[case_name]["median_seconds"] / direct_stats[case_name]["median_seconds"]
        line: str = (
            f"{case_name:26} {iterations:6d} "
            + f"{direct_median_ms:12.3f} {interpose_median_ms:15.3f} "
            + f"{slowdown_x:9.2f}x {direct_stats[case_name]['median_us_per_op']:14.3f} "
            + f"{interpose_stats[case_name]['median_us_per_op']:18.3f}"
        )
        lines.append(line)
    return "\n".join(lines)


def _run(args: argparse.Namespace) -> int:
    """Run every selected case in both modes and print the comparison.

    :param args: Parsed arguments.
    :returns: Process exit code.
    :raises ValueError: If the two modes disagree on a case's result.
    """
    base_iterations: dict[str, int] = _CASE_QUICK_ITERATIONS if args.quick is True else _CASE_DEFAULT_ITERATIONS
    iteration_map: dict[str, int] = _plan_iterations(args.cases, base_iterations, args.iteration_scale)
    selected_cases: list[str] = list(iteration_map)
    direct_stats: dict[str, dict[str, float]] = {}
    interpose_stats: dict[str, dict[str, float]] = {}

    for case_name in selected_cases:
        iterations: int = iteration_map[case_name]
        direct_stats[case_name], direct_summary = _time_case(case_name, "direct", iterations, args.repetitions)
        interpose_stats[case_name], interpose_summary = _time_case(
            case_name, "interpose", iterations, args.repetitions
        )
        if direct_summary != interpose_summary:
            raise ValueError(
                f"Result mismatch for case {case_name}\n"
                + f"direct={direct_summary}\n"
                + f"interpose={interpose_summary}"
            )

    print("Interpose Overhead Benchmark")
    print(f"Python: {sys.version.split()[0]}")
    print(f"Repetitions per mode: {args.repetitions}")
    print(f"Quick mode: {args.quick}")
    print(f"Iteration scale: {args.iteration_scale}")
    print("")
    print(_render_table(selected_cases, iteration_map, direct_stats, interpose_stats))
    print("")
    print("Regime descriptions:")
    for case_name in selected_cases:
        print(f"- {case_name}: {_CASE_DESCRIPTIONS[case_name]}")

    if args.json_output is not None:
        results_payload: dict[str, object] = {
            "repetitions": args.repetitions,
            "quick": args.quick,
            "iteration_scale": args.iteration_scale,
            "cases": selected_cases,
            "iterations": iteration_map,
            "direct_stats": direct_stats,
            "interpose_stats": interpose_stats,
        }
        json_path: pathlib.Path = pathlib.Path(args.json_output)
        json_path.write_text(json.dumps(results_payload, indent=2, sort_keys=True), encoding="utf-8")
        print("")
        print(f"Wrote raw benchmark JSON: {json_path}")
    return 0


def _parse_args() -> argparse.Namespace:
    """Parse CLI arguments.

    :returns: Parsed arguments.
    """
    parser = argparse.ArgumentParser(
        description="Compare direct calls against calls through interpose proxies."
    )
    parser.add_argument("--repetitions", type=int, default=5, help="Repetitions per mode/case.")
    parser.add_argument("--quick", action="store_true", help="Run lower-iteration quick benchmark settings.")
    parser.add_argument(
        "--cases",
        type=str,
        default=None,
        help="Comma-separated subset of cases to run.",
    )
    parser.add_argument(
        "--iteration-scale",
        type=float,
        default=1.0,
        help="Multiply per-case iteration counts by this scale.",
    )
    parser.add_argument(
        "--json-output",
        type=str,
        default=None,
        help="Optional path to write aggregated benchmark output as JSON.",
    )
    return parser.parse_args()


def main() -> int:
    """Run the benchmark.

    :returns: Process exit code.
    """
    return _run(_parse_args())


if __name__ == "__main__":
    raise SystemExit(main())
