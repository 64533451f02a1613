"""
REST API for Deposit Tree

This module provides a FastAPI-based REST API for submitting deposits to the
incremental deposit tree and querying roots, branch snapshots and deposit
inclusion proofs, with full OpenAPI documentation.
"""

import logging
import os
import traceback
from typing import List, Optional
from fastapi import FastAPI, HTTPException, Depends, Query
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from .deposit_service import DepositService, DepositServiceError
from ..ssz import CapacityExceededError, MalformedRecordError, bytes_to_hex
from ..models.api_models import (
    BranchResponse,
    DepositEventModel,
    DepositProofResponse,
    DepositRequest,
    DepositResponse,
    DepositRootResponse,
    ErrorResponse,
    HealthResponse,
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"

# Initialize FastAPI app
app = FastAPI(
    title="Deposit Tree API",
    description="""
    Maintain the validator deposit commitment of a proof-of-stake chain.

    Every accepted deposit is merkleized into a 32-byte leaf and appended to a
    fixed-depth (32) incremental Merkle tree. The deposit root mixes in the
    deposit count, and each deposit emits an event from which any client can
    rebuild the tree and its inclusion proofs.

    ## Features
    - **Deposits**: Submit pubkey, withdrawal credentials, amount and signature
    - **Deposit Root**: Current root and count, callable at any time
    - **Branch**: The accumulator's persisted layout (zero hashes, branch, count)
    - **Proofs**: Inclusion proofs for any deposit against any earlier tree size
    """,
    version=API_VERSION,
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT"
    }
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global deposit service instance
deposit_service = None


def get_deposit_service() -> DepositService:
    """Dependency to get the deposit service instance."""
    global deposit_service
    if deposit_service is None:
        deposit_service = DepositService()
    return deposit_service


@app.exception_handler(CapacityExceededError)
async def capacity_exceeded_handler(request, exc: CapacityExceededError):
    """Handle a full deposit tree."""
    logger.error(f"Capacity exceeded: {exc}")
    return JSONResponse(
        status_code=409,
        content=ErrorResponse(
            error=str(exc),
            code="CAPACITY_EXCEEDED",
            details={"error_type": "CapacityExceededError"}
        ).model_dump()
    )


@app.exception_handler(ValueError)
async def value_error_handler(request, exc: ValueError):
    """Handle validation errors, including malformed deposit records."""
    logger.error(f"Validation error: {exc}")
    code = "MALFORMED_RECORD" if isinstance(exc, MalformedRecordError) else "VALIDATION_ERROR"
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error=str(exc),
            code=code,
            details={"error_type": type(exc).__name__}
        ).model_dump()
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request, exc: RequestValidationError):
    """
    Report request validation failures with the same shape as other validation errors.

    Failures confined to the request body are malformed deposit records; bad
    query or path parameters are reported as VALIDATION_ERROR.
    """
    logger.error(f"Request validation error: {exc}")
    errors = exc.errors()
    in_body = bool(errors) and all(tuple(err.get("loc", ()))[:1] == ("body",) for err in errors)
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error="Invalid request",
            code="MALFORMED_RECORD" if in_body else "VALIDATION_ERROR",
            details={"errors": [str(err.get("msg")) for err in errors]}
        ).model_dump()
    )


@app.exception_handler(DepositServiceError)
async def deposit_service_exception_handler(request, exc: DepositServiceError):
    """Handle deposit service errors."""
    logger.error(f"Deposit service error: {exc}")
    return JSONResponse(
        status_code=503,
        content=ErrorResponse(
            error=str(exc),
            code="DEPOSIT_SERVICE_ERROR",
            details={"error_type": "DepositServiceError"}
        ).model_dump()
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle unexpected errors."""
    logger.error(f"Unexpected error: {exc}\n{traceback.format_exc()}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal server error",
            code="INTERNAL_ERROR",
            details={"error_type": type(exc).__name__}
        ).model_dump()
    )


@app.get("/", response_model=dict)
async def root():
    """API root endpoint with basic information."""
    return {
        "name": "Deposit Tree API",
        "version": API_VERSION,
        "description": "Incremental Merkle accumulator for validator deposits",
        "docs": "/docs",
        "health": "/health"
    }


@app.get("/health", response_model=HealthResponse)
async def health_check(service: DepositService = Depends(get_deposit_service)):
    """
    Health check endpoint.

    Reports the service status and the number of deposits in the tree.
    """
    return HealthResponse(
        status="healthy",
        deposit_count=service.get_deposit_count(),
        version=API_VERSION
    )


@app.post("/deposits", response_model=DepositResponse)
def submit_deposit(
    request: DepositRequest,
    service: DepositService = Depends(get_deposit_service)
):
    """
    Submit a deposit.

    The record is merkleized into its DepositData root, appended to the
    deposit tree and logged as a deposit event.

    **Response Structure:**
    - `index`: position of the deposit in the tree
    - `deposit_count` / `deposit_root`: tree state right after this deposit
    - `leaf`: the appended DepositData root
    - `event`: the emitted log record (integers as 8 little-endian bytes)
    """
    receipt = service.submit_deposit(
        pubkey=request.pubkey,
        withdrawal_credentials=request.withdrawal_credentials,
        amount=request.amount,
        signature=request.signature,
    )
    return DepositResponse(
        index=receipt.index,
        deposit_count=receipt.deposit_count,
        deposit_root=bytes_to_hex(receipt.deposit_root),
        leaf=bytes_to_hex(receipt.leaf),
        event=DepositEventModel(**receipt.event.to_dict()),
    )


@app.get("/deposit_root", response_model=DepositRootResponse)
def get_deposit_root(service: DepositService = Depends(get_deposit_service)):
    """Current deposit root and deposit count."""
    state = service.get_state()
    return DepositRootResponse(
        deposit_root=state["deposit_root"],
        deposit_count=state["deposit_count"],
        deposit_count_bytes=state["deposit_count_bytes"],
    )


@app.get("/branch", response_model=BranchResponse)
def get_branch(service: DepositService = Depends(get_deposit_service)):
    """Snapshot of the accumulator: zero hashes, branch and deposit count."""
    state = service.get_state()
    return BranchResponse(
        zero_hashes=state["zero_hashes"],
        branch=state["branch"],
        deposit_count=state["deposit_count"],
        deposit_root=state["deposit_root"],
    )


@app.get("/deposits", response_model=List[DepositEventModel])
def list_deposits(
    start: int = Query(0, ge=0, description="First deposit index"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of events"),
    service: DepositService = Depends(get_deposit_service)
):
    """Deposit events in index order."""
    events = service.get_events(start, start + limit)
    return [DepositEventModel(**event.to_dict()) for event in events]


@app.get("/deposits/{deposit_index}/proof", response_model=DepositProofResponse)
def get_deposit_proof(
    deposit_index: int,
    deposit_count: Optional[int] = Query(None, description="Tree size to prove against (defaults to current)"),
    service: DepositService = Depends(get_deposit_service)
):
    """
    Generate an inclusion proof for a deposit.

    The proof holds 32 sibling hashes followed by the length chunk, so it
    verifies against the length-mixed deposit root with one fold.
    """
    try:
        result = service.get_deposit_proof(deposit_index, deposit_count)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return DepositProofResponse(
        proof=[f"0x{step.hex()}" for step in result.proof],
        deposit_root=f"0x{result.root.hex()}",
        leaf=f"0x{result.leaf.hex()}",
        deposit_index=deposit_index,
        deposit_count=result.metadata["deposit_count"],
        metadata=result.metadata
    )


def run_server(host: Optional[str] = None, port: Optional[int] = None, dev: bool = False):
    """
    Run the API server.

    Args:
        host: Host to bind to (defaults to DEPOSIT_TREE_HOST or 127.0.0.1)
        port: Port to bind to (defaults to DEPOSIT_TREE_PORT or 8000)
        dev: Enable development mode with auto-reload
    """
    host = host or os.getenv("DEPOSIT_TREE_HOST", "127.0.0.1")
    port = port or int(os.getenv("DEPOSIT_TREE_PORT", "8000"))
    logger.info(f"Starting Deposit Tree API server on {host}:{port}")
    uvicorn.run(
        "deposit_tree.api.rest_api:app",
        host=host,
        port=port,
        reload=dev,
        log_level="info"
    )


if __name__ == "__main__":
    run_server(dev=True)
