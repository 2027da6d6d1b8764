"""
Logs into a web portal, reads the monitored service's status banner and e-mails an alert when the
service is inactive or the portal cannot be reached.
"""

__version__ = "0.1.0"
