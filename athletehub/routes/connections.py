# athletehub/routes/connections.py
import os
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from athletehub.auth import get_current_user
from athletehub.db import USERS, get_db
from athletehub.db.store import RecordStore
from athletehub.errors import NotFound
from athletehub.services.connections import ConnectionGraph, REQUESTED
from athletehub.utils.logger import log_activity

router = APIRouter(prefix="/connections", tags=["connections"])
templates = Jinja2Templates(directory=os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates"))


def get_graph() -> ConnectionGraph:
    return ConnectionGraph(RecordStore(get_db()))


def _names(graph: ConnectionGraph) -> dict:
    return {uid: rec.get("name") for uid, rec in graph.store.scan_all(USERS)}


def _overview(graph: ConnectionGraph, user_id: str) -> dict:
    names = _names(graph)
    listing = graph.list_connections(user_id)

    def row(entry):
        return {**entry.to_dict(), "name": names.get(entry.other) or entry.other}

    # outgoing requests are the caller's half of the picture
    outgoing = [row(e) for e in graph.pairs(user_id) if e.status == REQUESTED and e.requested_by == user_id]
    return {
        "incoming": [row(e) for e in listing.incoming],
        "outgoing": outgoing,
        "approved": [row(e) for e in listing.approved],
    }


@router.get("")
@router.get("/")
def my_connections(current_user: dict = Depends(get_current_user), graph: ConnectionGraph = Depends(get_graph)):
    return _overview(graph, current_user["_id"])


@router.get("/candidates")
def candidates(current_user: dict = Depends(get_current_user), graph: ConnectionGraph = Depends(get_graph)):
    return [c.to_dict() for c in graph.list_candidates(current_user["_id"])]


@router.get("/view", response_class=HTMLResponse)
def connections_page(
    request: Request,
    current_user: dict = Depends(get_current_user),
    graph: ConnectionGraph = Depends(get_graph),
):
    return templates.TemplateResponse(request, "connections.html", {
        "user": current_user,
        "connections": _overview(graph, current_user["_id"]),
        "candidates": [c.to_dict() for c in graph.list_candidates(current_user["_id"])],
    })


@router.post("/{target_id}", status_code=201)
def request_connection(
    target_id: str,
    current_user: dict = Depends(get_current_user),
    graph: ConnectionGraph = Depends(get_graph),
):
    graph.check_id(target_id, "target id")
    # role comes from the user record, not from anything the client sends
    target = graph.store.get(USERS, target_id)
    if target is None:
        raise NotFound("User not found")

    graph.request_connection(current_user["_id"], target_id, current_user["role"], target.get("role"))
    log_activity(current_user["_id"], "connection_request", {"target": target_id})
    return {"message": "Connection request sent"}


@router.post("/{requester_id}/approve")
def approve_connection(
    requester_id: str,
    current_user: dict = Depends(get_current_user),
    graph: ConnectionGraph = Depends(get_graph),
):
    graph.approve_connection(current_user["_id"], requester_id)
    log_activity(current_user["_id"], "connection_approve", {"requester": requester_id})
    return {"message": "Connection approved"}


@router.delete("/{other_id}")
def cancel_connection(
    other_id: str,
    current_user: dict = Depends(get_current_user),
    graph: ConnectionGraph = Depends(get_graph),
):
    try:
        graph.cancel_connection(current_user["_id"], other_id)
    except NotFound:
        # already gone and never existed look the same to the caller
        return {"message": "Connection already removed", "removed": False}

    log_activity(current_user["_id"], "connection_cancel", {"other": other_id})
    return {"message": "Connection removed", "removed": True}
