import io
import logging
import math
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel

from densematrix import Matrix, MatrixError
from eqsolve import Context, SolverError, SystemBuilder, find_root, solve_worksheet
from eqsolve.formatting import format_assignment, format_solution
from eqsolve.graph import build_residual_figure
from eqsolve.settings import get_settings

logger = logging.getLogger(__name__)

app = FastAPI(title="eqsolve API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Models ──────────────────────────────────────────────────────────────

class Hint(BaseModel):
    guess: Optional[float] = None
    lower: Optional[float] = None
    upper: Optional[float] = None


class SolveRequest(BaseModel):
    equation: str
    constants: dict[str, float] = {}
    guess: Optional[float] = None
    lower: Optional[float] = None
    upper: Optional[float] = None
    margin: Optional[float] = None
    iter_limit: Optional[int] = None


class SolveResponse(BaseModel):
    equation: str
    variable: str
    value: float
    text: str


class SystemRequest(BaseModel):
    equations: list[str]
    constants: dict[str, float] = {}
    hints: dict[str, Hint] = {}
    margin: Optional[float] = None
    iter_limit: Optional[int] = None


class SystemResponse(BaseModel):
    statuses: list[str]
    variables: list[str]
    solution: dict[str, float]
    text: str


class WorksheetRequest(BaseModel):
    text: str
    margin: Optional[float] = None
    iter_limit: Optional[int] = None


class WorksheetResponse(BaseModel):
    log: list[str]
    solution: dict[str, float]
    unsolved: list[str]
    text: str


class MatrixRequest(BaseModel):
    matrix: list[list[float]]


class InvertResponse(BaseModel):
    status: str
    inverse: Optional[list[list[float]]] = None
    text: Optional[str] = None


class MultiplyRequest(BaseModel):
    left: list[list[float]]
    right: list[list[float]]


class MultiplyResponse(BaseModel):
    product: list[list[float]]
    text: str


class PlotRequest(BaseModel):
    equation: str
    lower: float
    upper: float
    constants: dict[str, float] = {}
    root: Optional[float] = None


# ── Helpers ─────────────────────────────────────────────────────────────

def _run(fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except (ValueError, SolverError, MatrixError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Unexpected failure in %s", getattr(fn, "__name__", fn))
        raise HTTPException(status_code=500, detail=f"Solver error: {str(e)}")


def _context(constants: dict, settings: dict) -> Context:
    context = Context.default() if settings["default_context"] else Context.empty()
    for name, value in constants.items():
        context.add_const(name, value)
    return context


def _pick(value, default):
    return default if value is None else value


def _finite_or_none(value):
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


# ── Routes ──────────────────────────────────────────────────────────────

@app.post("/api/solve", response_model=SolveResponse)
def solve(req: SolveRequest):
    equation = req.equation.strip()
    if not equation:
        raise HTTPException(status_code=400, detail="Equation cannot be empty.")
    settings = get_settings()

    def work():
        context = _context(req.constants, settings)
        return find_root(
            equation, context,
            _pick(req.guess, settings["guess"]),
            _pick(req.lower, settings["lower"]),
            _pick(req.upper, settings["upper"]),
            _pick(req.margin, settings["margin"]),
            _pick(req.iter_limit, settings["iter_limit"]),
        )

    name, value = _run(work)
    return {"equation": equation, "variable": name, "value": value,
            "text": format_assignment(name, value)}


@app.post("/api/system", response_model=SystemResponse)
def system(req: SystemRequest):
    if not req.equations:
        raise HTTPException(status_code=400, detail="At least one equation is required.")
    settings = get_settings()

    def work():
        context = _context(req.constants, settings)
        builder = SystemBuilder(req.equations[0], context)
        statuses = [builder.is_fully_constrained().name]
        for equation in req.equations[1:]:
            statuses.append(builder.try_constrain_with(equation).name)
        constrained = builder.build_system()
        for name, hint in req.hints.items():
            current = constrained.hint(name) if name in constrained.variables else None
            if current is None:
                continue
            constrained.specify_variable(
                name,
                _pick(hint.guess, current.guess),
                _pick(hint.lower, current.lower),
                _pick(hint.upper, current.upper),
            )
        solution = constrained.solve(
            _pick(req.margin, settings["margin"]),
            _pick(req.iter_limit, settings["iter_limit"]),
        )
        return statuses, constrained.variables, solution

    statuses, variables, solution = _run(work)
    return {"statuses": statuses, "variables": variables, "solution": solution,
            "text": format_solution(solution, settings["delimiter"])}


@app.post("/api/worksheet", response_model=WorksheetResponse)
def worksheet(req: WorksheetRequest):
    if not req.text.strip():
        raise HTTPException(status_code=400, detail="Worksheet cannot be empty.")
    result = _run(solve_worksheet, req.text, margin=req.margin, iter_limit=req.iter_limit)
    return {"log": result.log, "solution": result.solution, "unsolved": result.unsolved,
            "text": result.as_text(get_settings()["delimiter"])}


@app.post("/api/matrix/invert", response_model=InvertResponse)
def matrix_invert(req: MatrixRequest):
    def work():
        m = Matrix.from_rows(req.matrix)
        return m, m.try_invert()

    m, status = _run(work)
    if status.name != "OK":
        return {"status": status.name}
    return {"status": status.name, "inverse": m.to_list(), "text": str(m)}


@app.post("/api/matrix/multiply", response_model=MultiplyResponse)
def matrix_multiply(req: MultiplyRequest):
    product = _run(lambda: Matrix.from_rows(req.left) @ Matrix.from_rows(req.right))
    return {"product": product.to_list(), "text": str(product)}


@app.post("/api/plot")
def plot(req: PlotRequest):
    settings = get_settings()

    def work():
        context = _context(req.constants, settings)
        fig = build_residual_figure(req.equation, context, req.lower, req.upper, req.root)
        buf = io.BytesIO()
        fig.savefig(buf, format="png", dpi=150, bbox_inches="tight",
                    facecolor=fig.get_facecolor())
        return buf.getvalue()

    return Response(content=_run(work), media_type="image/png")


@app.get("/api/settings")
def settings():
    return {key: _finite_or_none(value) for key, value in get_settings().items()}
