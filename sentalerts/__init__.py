"""Sent-alert markers that stop information-request alerts being delivered twice."""
