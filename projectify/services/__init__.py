"""Services - data access, authorization, workflow, notifications and analytics."""
