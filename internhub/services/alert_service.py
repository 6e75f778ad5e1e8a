"""
Alert Service - saved searches mailed to students as digests.

A student keeps at most one active alert. An admin (or a scheduler
calling the admin endpoint) triggers one dispatch run per frequency.
"""

import logging
from typing import List

from pymongo import DESCENDING
from pymongo.database import Database
from pymongo.errors import PyMongoError

from internhub.db.mongodb import get_collection
from internhub.services.mongo_service import populate
from internhub.services.notifier import Notifier
from internhub.utils.dates import utcnow

logger = logging.getLogger(__name__)

DIGEST_SIZE = 10


def build_alert_query(alert: dict) -> dict:
    """Active opportunities matching an alert's criteria."""
    query = {"isActive": True}

    if alert.get("keywords"):
        query["$text"] = {"$search": " ".join(alert["keywords"])}
    if alert.get("locations"):
        query["location"] = {"$in": alert["locations"]}
    if alert.get("industries"):
        query["industry"] = {"$in": alert["industries"]}
    if alert.get("types"):
        query["type"] = {"$in": alert["types"]}

    salary_range = alert.get("salaryRange") or {}
    salary = {}
    if salary_range.get("min"):
        salary["$gte"] = salary_range["min"]
    if salary_range.get("max"):
        salary["$lte"] = salary_range["max"]
    if salary:
        query["salary.amount"] = salary

    return query


def matching_opportunities(db: Database, alert: dict) -> List[dict]:
    docs = list(
        get_collection(db, "opportunities")
        .find(build_alert_query(alert))
        .sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
        .limit(DIGEST_SIZE)
    )
    return populate(db, docs, "organization", "organizations", ["name", "logo", "industry"])


def dispatch_alerts(db: Database, notifier: Notifier, frequency: str) -> dict:
    """
    Send one digest per active alert of `frequency`.

    Students who turned email notifications off and alerts with no
    matches are skipped. Per-alert failures are collected, not raised.

    Returns:
        {"emailsSent": int, "errors": [{"email", "error"}]}
    """
    alerts = get_collection(db, "alerts")
    students = get_collection(db, "students")
    sent = 0
    errors = []

    for alert in list(alerts.find({"isActive": True, "frequency": frequency})):
        student = students.find_one({"_id": alert["student"]})
        if not student or not student.get("emailNotifications", True):
            continue

        try:
            opportunities = matching_opportunities(db, alert)
        except PyMongoError as e:
            logger.warning("Alert %s query failed: %s", alert["_id"], e)
            errors.append({"email": student["email"], "error": str(e)})
            continue

        if not opportunities:
            continue

        if not notifier.alert_digest(student, alert, opportunities):
            errors.append({"email": student["email"], "error": "Email delivery failed"})
            continue

        alerts.update_one({"_id": alert["_id"]}, {"$set": {"lastSent": utcnow()}})
        sent += 1

    logger.info("%s alert digests sent, %d failed", frequency, len(errors))
    return {"emailsSent": sent, "errors": errors}
