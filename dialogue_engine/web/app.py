"""
Flask web application for Dialogue Engine - JSON API for running dialogue sessions
"""

import logging
import uuid
from pathlib import Path
from typing import Dict, Optional, Tuple

from flask import Flask, jsonify, request

from dialogue_engine.errors import AutoAdvanceBudgetExceeded, DialogueError, InvalidChoiceError
from dialogue_engine.session import DEFAULT_AUTO_ADVANCE_BUDGET, DialogSession
from dialogue_engine.state.store import ContextStore
from dialogue_engine.tree.tree import DialogTree
from dialogue_engine.tree.validator import DialogueValidator

logger = logging.getLogger(__name__)


def _resolve_dialogue_path(root: Path, filename: str) -> Optional[Path]:
    """Resolve a file under the dialogues root, refusing paths that escape it"""
    root = root.resolve()
    file_path = (root / filename).resolve()
    if root != file_path and root not in file_path.parents:
        return None
    if not file_path.is_file():
        return None
    return file_path


def create_app(dialogues_root=None, auto_advance_budget: int = DEFAULT_AUTO_ADVANCE_BUDGET):
    """Create and configure the Flask application"""
    app = Flask(__name__)

    # Default to repo_root/resources/dialogue if not specified
    if dialogues_root is None:
        dialogues_root = Path(__file__).parent.parent.parent / "resources" / "dialogue"
    else:
        dialogues_root = Path(dialogues_root)

    app.config["DIALOGUES_ROOT"] = dialogues_root
    app.config["AUTO_ADVANCE_BUDGET"] = auto_advance_budget

    # Live sessions by id; each owns the store it was started with.
    # Sessions are dropped once they end or break.
    sessions: Dict[str, DialogSession] = {}

    def load_tree(filename: str) -> Tuple[Optional[DialogTree], Optional[tuple]]:
        file_path = _resolve_dialogue_path(app.config["DIALOGUES_ROOT"], filename)
        if file_path is None:
            return None, (jsonify({"error": "File not found"}), 404)
        try:
            return DialogTree.load_file(file_path), None
        except DialogueError as e:
            return None, (jsonify({"error": str(e)}), 400)

    def get_session(data: dict) -> Tuple[Optional[DialogSession], Optional[tuple]]:
        session_id = data.get("sessionId")
        session = sessions.get(session_id)
        if session is None:
            return None, (jsonify({"error": f"Unknown session '{session_id}'"}), 404)
        return session, None

    def step_response(session_id: str, session: DialogSession, result):
        if result.is_terminal:
            sessions.pop(session_id, None)
            logger.debug("Session %s ended", session_id)
        return jsonify({"sessionId": session_id, "step": result.to_dict(), "state": session.store.to_dict()})

    def budget_response(session_id: str, error: AutoAdvanceBudgetExceeded):
        sessions.pop(session_id, None)
        return jsonify({"error": str(error), "chain": error.chain, "state": "error"}), 422

    @app.route("/api/dialogues")
    def list_dialogues():
        """List all dialogue tree files"""
        dialogue_dir = app.config["DIALOGUES_ROOT"]
        files = []

        if dialogue_dir.exists():
            for json_file in sorted(dialogue_dir.rglob("*.json")):
                rel_path = json_file.relative_to(dialogue_dir)
                files.append(
                    {
                        "relative_path": rel_path.as_posix(),
                        "name": json_file.stem,
                        "category": rel_path.parent.name if str(rel_path.parent) != "." else "root",
                    }
                )

        return jsonify({"files": files})

    @app.route("/api/dialogue/<path:filename>")
    def get_dialogue(filename):
        """Full tree in the JSON exchange format"""
        tree, error = load_tree(filename)
        if error:
            return error
        return jsonify(tree.to_dict())

    @app.route("/api/dialogue/<path:filename>/presentation")
    def get_presentation(filename):
        """Reduced tree for presentation layers"""
        tree, error = load_tree(filename)
        if error:
            return error
        return jsonify(tree.to_presentation_format())

    @app.route("/api/validate", methods=["POST"])
    def validate_tree():
        """Validate a tree posted as JSON"""
        data = request.get_json(silent=True) or {}
        try:
            tree = DialogTree.from_dict(data.get("tree"))
        except DialogueError as e:
            return jsonify({"error": str(e)}), 400

        validator = DialogueValidator(tree)
        is_valid = validator.validate()
        return jsonify(
            {
                "valid": is_valid,
                "errors": [issue.to_dict() for issue in validator.errors],
                "warnings": [issue.to_dict() for issue in validator.warnings],
            }
        )

    @app.route("/api/play/start", methods=["POST"])
    def start_session():
        """
        Start a conversation.

        Body: {"file": "<relative path>"} or {"tree": {...}}, plus optional
        "state" (a ContextStore dict) and "node" (entry node, default start node).
        """
        data = request.get_json(silent=True) or {}

        if data.get("file"):
            tree, error = load_tree(data["file"])
            if error:
                return error
        else:
            try:
                tree = DialogTree.from_dict(data.get("tree"))
            except DialogueError as e:
                return jsonify({"error": str(e)}), 400

        if data.get("state"):
            try:
                store = ContextStore.from_dict(data["state"])
            except (ValueError, TypeError, AttributeError) as e:
                return jsonify({"error": f"Invalid state: {e}"}), 400
        else:
            store = ContextStore(context=tree.variables)

        session = DialogSession(tree, store, auto_advance_budget=app.config["AUTO_ADVANCE_BUDGET"])
        session_id = uuid.uuid4().hex
        sessions[session_id] = session

        try:
            result = session.enter(data.get("node") or tree.start_node)
        except AutoAdvanceBudgetExceeded as e:
            return budget_response(session_id, e)

        logger.debug("Started session %s on tree '%s'", session_id, tree.id)
        return step_response(session_id, session, result)

    @app.route("/api/play/choose", methods=["POST"])
    def choose():
        """Take a choice by its index in the last presented choice list"""
        data = request.get_json(silent=True) or {}
        session, error = get_session(data)
        if error:
            return error

        try:
            result = session.choose(data.get("index"))
        except InvalidChoiceError as e:
            return jsonify({"error": str(e)}), 400
        except AutoAdvanceBudgetExceeded as e:
            return budget_response(data["sessionId"], e)

        return step_response(data["sessionId"], session, result)

    @app.route("/api/play/advance", methods=["POST"])
    def advance():
        """Continue past a node that waits for input without offering choices"""
        data = request.get_json(silent=True) or {}
        session, error = get_session(data)
        if error:
            return error

        try:
            result = session.advance()
        except AutoAdvanceBudgetExceeded as e:
            return budget_response(data["sessionId"], e)
        except DialogueError as e:
            return jsonify({"error": str(e)}), 409

        return step_response(data["sessionId"], session, result)

    @app.route("/api/play/<session_id>/state")
    def session_state(session_id):
        session = sessions.get(session_id)
        if session is None:
            return jsonify({"error": f"Unknown session '{session_id}'"}), 404
        return jsonify({"session": session.to_dict(), "state": session.store.to_dict()})

    return app


def main():
    """Run the development server"""
    import argparse

    parser = argparse.ArgumentParser(description="Dialogue Engine Web API")
    parser.add_argument("--dialogues", "-d", help="Path to dialogues directory", default=None)
    parser.add_argument("--port", "-p", help="Port to run on", type=int, default=5000)
    parser.add_argument("--budget", help="Max auto-advance hops per step", type=int, default=DEFAULT_AUTO_ADVANCE_BUDGET)
    parser.add_argument("--debug", help="Run in debug mode", action="store_true")

    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)
    app = create_app(dialogues_root=args.dialogues, auto_advance_budget=args.budget)

    print(f"\n{'=' * 60}")
    print("🎭 Dialogue Engine Web API")
    print(f"{'=' * 60}")
    print(f"\n📂 Dialogues directory: {app.config['DIALOGUES_ROOT']}")
    print(f"🌐 Server running at: http://localhost:{args.port}")
    print("\nPress Ctrl+C to stop\n")

    app.run(host="0.0.0.0", port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
