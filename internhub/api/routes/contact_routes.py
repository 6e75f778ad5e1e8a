"""
Contact Routes

POST /contact - Send a contact form message to support (public)
"""

from fastapi import APIRouter, Depends, HTTPException

from internhub.schemas.schemas import ContactMessage, MessageResponse
from internhub.services.notifier import Notifier, get_notifier

router = APIRouter(prefix="/contact", tags=["Contact"])


@router.post("", response_model=MessageResponse)
def send_contact_message(data: ContactMessage, notifier: Notifier = Depends(get_notifier)):
    """Mail the message to support; the sender gets a confirmation copy."""
    if not notifier.contact_message(data.name, data.email, data.subject, data.message):
        raise HTTPException(status_code=500, detail="Failed to send message. Please try again later.")
    return MessageResponse(message="Your message has been sent successfully. We will get back to you soon.")
