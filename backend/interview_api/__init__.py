"""Interview session service: participant sessions, transcripts, reports."""
