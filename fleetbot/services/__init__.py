"""Services: automation driver, bot sessions and fleet orchestration."""
