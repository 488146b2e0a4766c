"""Flask web application: cron trigger and unsubscribe endpoints."""

import hmac
import logging
from typing import Optional, Sequence

from flask import Flask, jsonify, render_template, request

from maintenance import (
    Config,
    ConfigError,
    MaintenanceItemType,
    Mailer,
    NotificationJob,
    RecordStore,
    ResendMailer,
    StoreError,
    YamlRecordStore,
    load_item_types,
)
from maintenance.logging_config import setup_logging
from maintenance.unsubscribe import (
    UNSUBSCRIBE_PATH,
    build_unsubscribe_url,
    verify_unsubscribe_token,
)

logger = logging.getLogger(__name__)

CRON_PATH = "/api/cron/maintenance-notifications"


def is_authorized(auth_header: Optional[str], secret: Optional[str]) -> bool:
    """Check a bearer token. No configured secret denies everything."""
    if not secret or not auth_header:
        return False
    return hmac.compare_digest(auth_header.encode(), f"Bearer {secret}".encode())


def create_app(
    config: Optional[Config] = None,
    store: Optional[RecordStore] = None,
    mailer: Optional[Mailer] = None,
    item_types: Optional[Sequence[MaintenanceItemType]] = None,
) -> Flask:
    """
    Build the Flask app.

    Store, mailer and item types are built from config on each request
    unless given, so a misconfigured deployment fails per request with 500.
    """
    config = config or Config.from_env()
    setup_logging(config.log_level)

    app = Flask(__name__)

    def get_store() -> RecordStore:
        if store is not None:
            return store
        config.require("data_file")
        return YamlRecordStore(config.data_file)

    def get_mailer() -> Mailer:
        if mailer is not None:
            return mailer
        config.require("resend_api_key", "mail_from")
        return ResendMailer(config.resend_api_key, config.mail_from)

    def build_job(send: bool) -> NotificationJob:
        types = item_types if item_types is not None else load_item_types(config.intervals_file)
        return NotificationJob(
            get_store(),
            types,
            mailer=get_mailer() if send else None,
            config=config,
        )

    def config_error(e: ConfigError):
        logger.error("Configuration error: %s", e)
        return jsonify({"error": "Server configuration error"}), 500

    @app.route(CRON_PATH, methods=["GET"])
    def preview_notifications():
        """Dry run: what would be sent, without sending or touching the ledger."""
        if not is_authorized(request.headers.get("Authorization"), config.cron_secret):
            return jsonify({"error": "Unauthorized"}), 401
        try:
            job = build_job(send=False)
        except ConfigError as e:
            return config_error(e)
        return jsonify(job.preview().to_dict())

    @app.route(CRON_PATH, methods=["POST"])
    def send_notifications():
        """Send digests and commit the ledger."""
        if not is_authorized(request.headers.get("Authorization"), config.cron_secret):
            return jsonify({"error": "Unauthorized"}), 401
        try:
            job = build_job(send=True)
            result = job.execute()
        except ConfigError as e:
            return config_error(e)
        return jsonify(result.to_dict())

    @app.route(UNSUBSCRIBE_PATH, methods=["GET"])
    def unsubscribe():
        """One-click unsubscribe, or re-subscribe with resubscribe=1."""
        user_id = request.args.get("uid")
        token = request.args.get("token")
        resubscribe = request.args.get("resubscribe") == "1"

        if not user_id or not token:
            return render_template(
                "unsubscribe.html",
                title="Invalid link",
                message="This unsubscribe link is missing required parameters.",
            ), 400

        try:
            valid = verify_unsubscribe_token(user_id, token, config.unsubscribe_secret)
            target = get_store()
        except ConfigError as e:
            logger.error("Configuration error: %s", e)
            return render_template(
                "unsubscribe.html", title="Server error", message="Please try again later."
            ), 500

        if not valid:
            return render_template(
                "unsubscribe.html",
                title="Invalid link",
                message="This unsubscribe link has expired or is invalid.",
            ), 403

        try:
            target.set_notifications_enabled(user_id, resubscribe)
        except StoreError as e:
            logger.error("Failed to update notification preference for %s: %s", user_id, e)
            return render_template(
                "unsubscribe.html",
                title="Something went wrong",
                message="We could not update your preference. Please try again "
                "or update it in your dashboard settings.",
            ), 500

        if resubscribe:
            return render_template(
                "unsubscribe.html",
                title="You're re-subscribed!",
                message="You'll receive maintenance reminders again.",
                link_text="Unsubscribe again",
                link_url=build_unsubscribe_url("", user_id, config.unsubscribe_secret),
            )
        return render_template(
            "unsubscribe.html",
            title="You've been unsubscribed",
            message="You will no longer receive maintenance reminder emails.",
            link_text="Changed your mind? Re-subscribe",
            link_url=build_unsubscribe_url(
                "", user_id, config.unsubscribe_secret, resubscribe=True
            ),
        )

    return app


if __name__ == "__main__":
    create_app().run(debug=True, host="0.0.0.0", port=5001)
