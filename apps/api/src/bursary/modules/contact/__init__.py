"""Contact module - public contact form submissions."""

from bursary.modules.contact.models import ContactSubmission

__all__ = ["ContactSubmission"]
