"""
Benchmarks API Router
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from signalboard.core.database import get_db
from signalboard.services import store

router = APIRouter()
logger = logging.getLogger(__name__)


class BenchmarkCreateRequest(BaseModel):
    name: str
    target_impact: float
    urgency_threshold: int = 3
    tier_weights: Optional[dict[str, float]] = None


@router.post("")
def create_benchmark(request: BenchmarkCreateRequest, db: Session = Depends(get_db)):
    try:
        benchmark = store.create_benchmark(db, request.model_dump())
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        db.rollback()
        logger.exception("Failed to create benchmark")
        raise HTTPException(status_code=500, detail="Failed to create benchmark") from e
    return {"ok": True, "benchmark": asdict(benchmark)}


@router.get("")
def list_benchmarks(db: Session = Depends(get_db)):
    return [asdict(benchmark) for benchmark in store.list_benchmarks(db)]


@router.post("/{benchmark_id}/activate")
def activate_benchmark(benchmark_id: int, db: Session = Depends(get_db)):
    try:
        benchmark = store.activate_benchmark(db, benchmark_id)
    except store.NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return {"ok": True, "benchmark": asdict(benchmark)}


@router.delete("/{benchmark_id}")
def delete_benchmark(benchmark_id: int, db: Session = Depends(get_db)):
    try:
        promoted = store.delete_benchmark(db, benchmark_id)
    except store.NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return {"ok": True, "active": asdict(promoted) if promoted else None}
