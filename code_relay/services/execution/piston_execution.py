"""
Code execution through a remote Piston-style sandbox.
Resolves languages against the cached runtime directory, submits code and
normalizes the service's compile/run stages into ExecutionResult objects.
"""

import logging
import time
from typing import Any, Dict, Iterable, List, Optional

import httpx

from ...config import RUNTIME_CACHE_TTL
from .languages import resolve_language
from .piston_client import PistonClient
from .runtime_cache import RuntimeCache, RuntimeDescriptor
from .test_validator import (
    TestCaseLike,
    TestCaseResult,
    coerce_testcase,
    failed_result,
    outputs_match,
)

logger = logging.getLogger(__name__)


class UnsupportedLanguageError(Exception):
    """The resolved language is not in the execution service's runtime directory"""

    def __init__(self, label: str, identifier: str):
        self.label = label
        self.identifier = identifier
        super().__init__(f"Language {label} not supported. Tried: {identifier}")


class ExecutionResult:
    """Data class for execution results"""
    def __init__(
        self,
        output: str,
        error: Optional[str] = None,
        execution_time: float = 0.0,
        status: str = "success"
    ):
        self.output = output
        self.error = error
        self.execution_time = execution_time
        self.status = status  # "success", "compilation_error", "runtime_error", "error"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "output": self.output,
            "error": self.error,
            "execution_time": round(self.execution_time, 3)
        }


class PistonExecutor:
    """
    Runs submissions on a remote execution service and grades them against test cases.

    Limits:
    - Run timeout: time_limit seconds (default 5), enforced by the service
    - Compile timeout: 10 seconds, enforced by the service
    - Memory limit: accepted for interface compatibility, not forwarded
    """

    DEFAULT_TIME_LIMIT = 5  # seconds
    COMPILE_TIMEOUT_MS = 10000

    def __init__(
        self,
        client: Optional[PistonClient] = None,
        runtime_cache: Optional[RuntimeCache] = None,
        cache_ttl: float = RUNTIME_CACHE_TTL
    ):
        self.client = client or PistonClient()
        self.runtime_cache = runtime_cache or RuntimeCache(
            self.client.fetch_runtimes,
            ttl=cache_ttl,
            source=self.client.base_url,
        )
        logger.info(f"PistonExecutor initialized against {self.client.base_url}")

    async def get_runtimes(self) -> List[RuntimeDescriptor]:
        """Runtime directory from the cache. Fetch errors propagate."""
        return await self.runtime_cache.get()

    async def _find_runtime(self, language: str) -> RuntimeDescriptor:
        identifier = resolve_language(language)
        runtimes = await self.runtime_cache.get()

        for runtime in runtimes:
            if runtime.matches(identifier):
                return runtime

        available = ", ".join(r.language for r in runtimes)
        logger.error(f'Language "{identifier}" not found. Available languages: {available}')
        raise UnsupportedLanguageError(language, identifier)

    async def execute_code(
        self,
        code: str,
        language: str,
        stdin: str = "",
        time_limit: Optional[float] = None
    ) -> ExecutionResult:
        """
        Execute code once on the remote service.

        Args:
            code: Source code, sent as a single file
            language: Language label, e.g. "C++" or "python"
            stdin: Standard input for the program
            time_limit: Run timeout in seconds (default 5)

        Returns:
            ExecutionResult. Failures of any kind are reported through
            ``error``; this method does not raise.
        """
        start_time = time.time()

        try:
            runtime = await self._find_runtime(language)

            run_timeout_ms = int((time_limit or self.DEFAULT_TIME_LIMIT) * 1000)

            logger.info(
                f"Executing code: language={runtime.language}, version={runtime.version}, "
                f"run_timeout={run_timeout_ms}ms, input_length={len(stdin or '')}"
            )

            data = await self.client.execute({
                "language": runtime.language,
                "version": runtime.version,
                "files": [{"content": code}],
                "stdin": stdin or "",
                "compile_timeout": self.COMPILE_TIMEOUT_MS,
                "run_timeout": run_timeout_ms
            })

            execution_time = time.time() - start_time
            return self._interpret_response(data, execution_time)

        except httpx.HTTPStatusError as e:
            execution_time = time.time() - start_time
            message = self._api_error_message(e)
            logger.warning(f"Execution service returned {e.response.status_code}: {message}")
            return ExecutionResult(
                output="",
                error=f"API Error: {message}",
                execution_time=execution_time,
                status="error"
            )

        except Exception as e:
            execution_time = time.time() - start_time
            logger.error(f"Execution failed: {e!r}")
            return ExecutionResult(
                output="",
                error=str(e) or type(e).__name__,
                execution_time=execution_time,
                status="error"
            )

    def _interpret_response(self, data: Dict[str, Any], execution_time: float) -> ExecutionResult:
        compile_stage = data.get("compile")
        run_stage = data.get("run")

        if not isinstance(run_stage, dict):
            raise ValueError("Malformed response from execution service: missing run stage")

        logger.debug(
            "Execution service response: "
            f"compile_code={compile_stage.get('code') if compile_stage else None}, "
            f"run_code={run_stage.get('code')}, run_signal={run_stage.get('signal')}, "
            f"stdout={(run_stage.get('stdout') or '')[:100]!r}, "
            f"stderr={(run_stage.get('stderr') or '')[:100]!r}"
        )

        if compile_stage is not None and compile_stage.get("code") != 0:
            return ExecutionResult(
                output="",
                error=compile_stage.get("stderr") or compile_stage.get("output") or "Compilation error",
                execution_time=execution_time,
                status="compilation_error"
            )

        if run_stage.get("code") != 0 and run_stage.get("signal"):
            return ExecutionResult(
                output=run_stage.get("stdout") or "",
                error=run_stage.get("stderr") or f"Runtime error (signal: {run_stage['signal']})",
                execution_time=execution_time,
                status="runtime_error"
            )

        return ExecutionResult(
            output=run_stage.get("stdout") or "",
            error=run_stage.get("stderr") or None,
            execution_time=execution_time,
            status="success" if run_stage.get("code") == 0 else "runtime_error"
        )

    @staticmethod
    def _api_error_message(error: httpx.HTTPStatusError) -> str:
        try:
            payload = error.response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict) and payload.get("message"):
            return str(payload["message"])
        return str(error)

    async def run_testcases(
        self,
        code: str,
        language: str,
        testcases: Iterable[TestCaseLike],
        time_limit: Optional[float] = None,
        memory_limit: Optional[int] = None
    ) -> List[TestCaseResult]:
        """
        Run code against each test case, one at a time, in order.

        Args:
            code: Source code to execute
            language: Language label
            testcases: TestCase objects or dicts with id/input/expected_output
            time_limit: Run timeout in seconds per case
            memory_limit: Informational only; the execution service is not told about it

        Returns:
            One TestCaseResult per test case, in input order
        """
        if memory_limit is not None:
            logger.debug(f"memory_limit={memory_limit} accepted but not forwarded to the execution service")

        results = []

        for raw_case in testcases:
            try:
                testcase = coerce_testcase(raw_case)
                result = await self.execute_code(code, language, testcase.input, time_limit)

                results.append(TestCaseResult(
                    testcase_id=testcase.id,
                    passed=outputs_match(result.output, testcase.expected_output),
                    input=testcase.input,
                    expected_output=testcase.expected_output,
                    actual_output=result.output,
                    error=result.error,
                    execution_time=result.execution_time
                ))
            except ValueError as e:
                logger.warning(f"Skipping invalid test case: {e}")
                results.append(failed_result(raw_case, str(e)))
            except Exception as e:
                logger.error(f"Test case crashed the runner: {e}", exc_info=True)
                results.append(failed_result(raw_case, str(e)))

        passed = sum(1 for r in results if r.passed)
        logger.info(f"Test run completed: {passed}/{len(results)} passed")
        return results

    async def health_check(self) -> Dict[str, Any]:
        """
        Check that the execution service answers and report what it supports.

        Returns:
            Dict with status and details
        """
        try:
            runtimes = await self.runtime_cache.get()
            return {
                "status": "healthy",
                "service_url": self.client.base_url,
                "runtime_count": len(runtimes),
                "cache_valid": self.runtime_cache.is_valid(),
                "cache_ttl_seconds": self.runtime_cache.ttl
            }
        except Exception as e:
            return {
                "status": "unhealthy",
                "service_url": self.client.base_url,
                "error": str(e) or type(e).__name__
            }
