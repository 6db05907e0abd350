# workflow/errors.py
# Error kinds raised by the routing engine. The API layer maps them to HTTP.


class WorkflowError(Exception):
    code = "workflow_error"
    http_status = 400
    # Configuration defects must reach an operator, not just the end user
    operator_alert = False

    def __init__(self, message=None, **context):
        self.message = message or self.default_message()
        self.context = context
        super().__init__(self.message)

    def default_message(self):
        return "Workflow error."

    def to_dict(self):
        return {"error": self.code, "message": self.message}


class ValidationError(WorkflowError):
    code = "validation_error"
    http_status = 400

    def __init__(self, message=None, fields=None, **context):
        self.fields = dict(fields or {})
        super().__init__(message, **context)

    def default_message(self):
        return "Invalid request data."

    def to_dict(self):
        data = super().to_dict()
        if self.fields:
            data["fields"] = self.fields
        return data


class NoWorkflowConfigured(WorkflowError):
    code = "no_workflow_configured"
    http_status = 422
    operator_alert = True

    def default_message(self):
        return "No workflow configured for this request type."


class NoApproverResolvable(WorkflowError):
    code = "no_approver_resolvable"
    http_status = 422
    operator_alert = True

    def default_message(self):
        return "Could not determine an approver for this request."


class NotAuthorizedApprover(WorkflowError):
    code = "not_authorized_approver"
    http_status = 403

    def default_message(self):
        return "Not authorized to act on this request."


class AlreadyFinalized(WorkflowError):
    code = "already_finalized"
    http_status = 409

    def default_message(self):
        return "This request has already been finalized."


class CommentRequired(WorkflowError):
    code = "comment_required"
    http_status = 400

    def default_message(self):
        return "A comment is required for this action."


class ConcurrentModification(WorkflowError):
    code = "concurrent_modification"
    http_status = 409

    def default_message(self):
        return "The request was changed by someone else. Reload it and try again."


class InvalidTransition(WorkflowError):
    code = "invalid_transition"
    http_status = 409

    def default_message(self):
        return "This action is not allowed in the request's current state."
