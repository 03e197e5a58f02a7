from fastapi import Request

from .services import Accounts, TaskOperations


def get_accounts(request: Request) -> Accounts:
    return request.app.state.accounts


def get_task_operations(request: Request) -> TaskOperations:
    return request.app.state.task_operations
