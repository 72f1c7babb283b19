"""
FastAPI endpoints for running code and test cases on the remote execution service.
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from typing import List, Optional, Any
from datetime import datetime
import logging

from ...services.execution import PistonExecutor, TestCase, summarize_results

logger = logging.getLogger(__name__)

# Initialize executor (singleton, owns the runtime cache)
executor = PistonExecutor()

router = APIRouter(prefix="/api/execution", tags=["execution"])


# --- REQUEST/RESPONSE MODELS ---

class TestCaseModel(BaseModel):
    """Individual test case for code validation"""
    id: Optional[Any] = Field(None, description="Caller-defined test case identifier")
    input: str = Field(default="", description="Standard input for the test")
    expected_output: str = Field(..., description="Expected program output")


class ExecutionRequest(BaseModel):
    """Request body for a single execution"""
    code: str = Field(..., description="Source code to execute")
    language: str = Field(..., description='Language label, e.g. "Python" or "C++"')
    stdin: Optional[str] = Field(default="", description="Standard input")
    time_limit: Optional[float] = Field(None, gt=0, description="Run timeout in seconds (default 5)")


class TestcaseRunRequest(BaseModel):
    """Request body for running code against test cases"""
    code: str = Field(..., description="Source code to execute")
    language: str = Field(..., description='Language label, e.g. "Python" or "C++"')
    testcases: List[TestCaseModel] = Field(..., description="Test cases, run in order")
    time_limit: Optional[float] = Field(None, gt=0, description="Run timeout in seconds per test case")
    memory_limit: Optional[int] = Field(None, description="Informational; not forwarded to the execution service")


class ExecutionResponse(BaseModel):
    """Response body for a single execution"""
    status: str
    output: str
    error: Optional[str] = None
    execution_time: float
    timestamp: datetime


class TestCaseResultModel(BaseModel):
    testcase_id: Optional[Any] = None
    passed: bool
    input: str
    expected_output: str
    actual_output: str
    error: Optional[str] = None
    execution_time: float


class TestcaseRunResponse(BaseModel):
    """Response body for a test case run"""
    results: List[TestCaseResultModel]
    total: int
    passed: int
    failed: int
    all_passed: bool
    timestamp: datetime


class RuntimeModel(BaseModel):
    language: str
    version: Optional[str] = None
    aliases: List[str] = []


# --- ENDPOINTS ---

@router.post("/run", response_model=ExecutionResponse)
async def run_code(request: ExecutionRequest):
    """
    Execute code once on the remote execution service.

    Compilation errors, runtime crashes and service failures are reported in
    the ``error`` field rather than as HTTP errors.
    """
    logger.info(f"Execution request: language={request.language}")

    try:
        result = await executor.execute_code(
            code=request.code,
            language=request.language,
            stdin=request.stdin or "",
            time_limit=request.time_limit
        )
    except Exception as e:
        logger.error(f"Execution failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Execution service error: {str(e)}"
        )

    return ExecutionResponse(
        status=result.status,
        output=result.output,
        error=result.error,
        execution_time=round(result.execution_time, 3),
        timestamp=datetime.now()
    )


@router.post("/testcases", response_model=TestcaseRunResponse)
async def run_testcases(request: TestcaseRunRequest):
    """
    Run code against each test case in order and grade the output.

    Output comparison ignores leading and trailing whitespace only.
    """
    logger.info(
        f"Test case run request: language={request.language}, "
        f"testcases={len(request.testcases)}"
    )

    try:
        results = await executor.run_testcases(
            code=request.code,
            language=request.language,
            testcases=[
                TestCase(id=tc.id, input=tc.input, expected_output=tc.expected_output)
                for tc in request.testcases
            ],
            time_limit=request.time_limit,
            memory_limit=request.memory_limit
        )
    except Exception as e:
        logger.error(f"Test case run failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Execution service error: {str(e)}"
        )

    return TestcaseRunResponse(
        results=[TestCaseResultModel(**r.to_dict()) for r in results],
        timestamp=datetime.now(),
        **summarize_results(results)
    )


@router.get("/runtimes", response_model=List[RuntimeModel])
async def list_runtimes():
    """
    List the runtimes the execution service supports (cached for an hour).
    """
    try:
        runtimes = await executor.get_runtimes()
    except Exception as e:
        logger.error(f"Runtime listing failed: {e}")
        raise HTTPException(
            status_code=502,
            detail=f"Execution service unavailable: {str(e) or type(e).__name__}"
        )

    return [
        RuntimeModel(language=r.language, version=r.version, aliases=list(r.aliases))
        for r in runtimes
    ]


@router.get("/health")
async def health_check(refresh: bool = False):
    """
    Check if the execution service is reachable.

    Pass ``refresh=true`` to drop the cached runtime directory first.
    """
    if refresh:
        executor.runtime_cache.invalidate()

    health = await executor.health_check()

    if health["status"] != "healthy":
        raise HTTPException(
            status_code=503,
            detail="Execution service unavailable"
        )

    return health
