from flask import Flask, render_template, request, jsonify, session, redirect, send_file, url_for
import io
import logging
import uuid
from concurrent.futures import ThreadPoolExecutor

from analysis.emotion import detect_emotion
from analysis.engine import create_client, generate_analysis

from client.api import AnalysisClient, EmotionClient, PersistenceClient
from client.orchestrator import ScreeningOrchestrator

from common.config import ROOT_DIR, load_settings
from common.errors import ScreeningError

from session.context import ScreeningContext
from session.models import FIELD_LABELS, FIELD_OPTIONS, Page
from session.records import build_record

from storage.assessments import FirestoreAssessmentStore
from storage.dead_letter import DeadLetterStore


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# -------------------------------------------------
# Setup
# -------------------------------------------------

def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def create_app(settings=None):
    """
    Backend API + screening UI in one Flask app.

    The UI talks to the API over HTTP through settings.api_base_url,
    so the two can also be deployed apart.

    Swappable collaborators live in app.config:
    - GENAI_CLIENT: genai.Client or None (None -> /analyze answers 503)
    - ASSESSMENT_STORE: store with save(record) -> id, created lazily
    - ORCHESTRATOR_FACTORY: ScreeningContext -> ScreeningOrchestrator
    """
    settings = settings or load_settings()

    app = Flask(
        __name__,
        template_folder=str(ROOT_DIR / "templates"),
    )
    app.secret_key = settings.secret_key

    dead_letter = DeadLetterStore(settings.dead_letter_db)
    dead_letter.init_db()

    executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="persist")

    def make_orchestrator(ctx):
        return ScreeningOrchestrator(
            ctx,
            analysis_client=AnalysisClient(settings.api_base_url),
            emotion_client=EmotionClient(settings.api_base_url),
            persistence_client=PersistenceClient(settings.api_base_url),
            executor=executor,
            dead_letter=dead_letter,
        )

    app.config.update(
        SETTINGS=settings,
        GENAI_CLIENT=create_client(settings.gemini_api_key),
        ASSESSMENT_STORE=None,
        ORCHESTRATOR_FACTORY=make_orchestrator,
        DEAD_LETTER=dead_letter,
    )

    session_orchestrators = {}
    app.extensions["screening_sessions"] = session_orchestrators

    # -------------------------------------------------
    # Helpers
    # -------------------------------------------------

    def get_store():
        store = app.config["ASSESSMENT_STORE"]
        if store is None:
            store = FirestoreAssessmentStore.from_credentials(
                settings.firebase_credentials,
                settings.firestore_collection,
            )
            app.config["ASSESSMENT_STORE"] = store
        return store

    def get_orchestrator():
        if "session_id" not in session:
            session["session_id"] = str(uuid.uuid4())

        sid = session["session_id"]
        if sid not in session_orchestrators:
            session_orchestrators[sid] = app.config["ORCHESTRATOR_FACTORY"](ScreeningContext())
        return session_orchestrators[sid]

    @app.errorhandler(ScreeningError)
    def handle_screening_error(e):
        return jsonify(e.to_envelope()), e.status_code

    # -------------------------------------------------
    # API routes
    # -------------------------------------------------

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({
            "status": "ok",
            "analysisConfigured": app.config["GENAI_CLIENT"] is not None,
        })

    @app.route("/analyze", methods=["POST"])
    def analyze():
        child_data = _json_body()
        result = generate_analysis(
            child_data,
            client=app.config["GENAI_CLIENT"],
            model=settings.gemini_model,
        )
        return jsonify(result)

    @app.route("/analyze-emotion", methods=["POST"])
    def analyze_emotion():
        photo = request.files.get("photo")
        if photo is None:
            return jsonify({"success": False, "error": "No photo uploaded"}), 400

        try:
            data = detect_emotion(
                photo.read(),
                photo.mimetype,
                client=app.config["GENAI_CLIENT"],
                model=settings.gemini_model,
            )
        except ScreeningError as e:
            body = {"success": False, "error": e.message}
            if e.detail:
                body["detailedError"] = e.detail
            return jsonify(body), e.status_code

        return jsonify({"success": True, **data})

    @app.route("/save-conversation", methods=["POST"])
    def save_conversation():
        record = build_record(_json_body())
        doc_id = get_store().save(record)
        return jsonify({"success": True, "id": doc_id})

    # -------------------------------------------------
    # Screening UI
    # -------------------------------------------------

    @app.route("/")
    def index():
        orchestrator = get_orchestrator()
        return render_template(
            "index.html",
            view=orchestrator.context.snapshot(),
            pages=Page,
            labels=FIELD_LABELS,
            options=FIELD_OPTIONS,
        )

    @app.route("/screening", methods=["POST"])
    def submit_screening():
        orchestrator = get_orchestrator()
        orchestrator.update_form(request.form)
        orchestrator.submit()
        return redirect(url_for("index"))

    @app.route("/screening/photo", methods=["POST"])
    def upload_photo():
        orchestrator = get_orchestrator()
        orchestrator.update_form(request.form)

        photo = request.files.get("photo")
        if photo is None or not photo.filename:
            orchestrator.context.emotion_error = "Please select a photo first"
        else:
            orchestrator.analyze_photo(photo.read(), photo.filename, photo.mimetype)
        return redirect(url_for("index"))

    @app.route("/screening/photo/clear", methods=["POST"])
    def clear_photo():
        get_orchestrator().clear_photo()
        return redirect(url_for("index"))

    @app.route("/screening/reset", methods=["POST"])
    def reset_screening():
        # Finished sessions leave the registry
        orchestrator = session_orchestrators.pop(session.pop("session_id", None), None)
        if orchestrator is not None:
            orchestrator.reset()
        return redirect(url_for("index"))

    @app.route("/screening/report.pdf", methods=["GET"])
    def download_report():
        report = get_orchestrator().download_report()
        if report is None:
            return redirect(url_for("index"))

        filename, pdf = report
        return send_file(
            io.BytesIO(pdf),
            mimetype="application/pdf",
            as_attachment=True,
            download_name=filename,
        )

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True, port=app.config["SETTINGS"].port)
