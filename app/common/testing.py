from __future__ import annotations

import threading

from django.contrib.auth import get_user_model
from django.db import connections

from tenants.models import Tenant
from tenants.services import login_name
from workforce.models import Department, Worker
from workforce.services import create_worker


def make_tenant(code: str, admin_username: str = "admin") -> Tenant:
    owner = get_user_model().objects.create_user(
        username=login_name(code, admin_username),
        password="pwd12345",
    )
    return Tenant.objects.create(name=code.title(), code=code, owner=owner)


def make_worker(tenant: Tenant, username: str, rfid: str = "", department: Department | None = None, **extra) -> Worker:
    fields = {
        "name": extra.pop("name", username.title()),
        "username": username,
        "email": extra.pop("email", f"{username}@{tenant.code}.example.com"),
        "rfid": rfid,
        "department": department,
    }
    fields.update(extra)
    return create_worker(tenant, password="pwd12345", **fields)


def run_concurrently(*calls):
    """Run each callable on its own thread, released together, and return their results in order.

    Every thread opens its own database connection, so this is only meaningful
    inside a ``TransactionTestCase``.
    """
    barrier = threading.Barrier(len(calls))
    results = [None] * len(calls)
    errors = []

    def run(index, call):
        try:
            barrier.wait()
            results[index] = call()
        except Exception as exc:
            errors.append(exc)
        finally:
            connections.close_all()

    threads = [threading.Thread(target=run, args=(index, call)) for index, call in enumerate(calls)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    if errors:
        raise errors[0]
    return results
