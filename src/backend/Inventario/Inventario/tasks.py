"""Functions for offloading work to the background worker."""

import structlog

from Inventario.exceptions import log_error

logger = structlog.get_logger('inventario')


def offload_task(taskname, *args, **kwargs) -> bool:
    """Hand a task over to the django-q2 cluster.

    The caller is never affected by the outcome: any failure to enqueue
    (broker down, bad task path, worker error in sync mode) is logged
    and reported through the return value only.

    Arguments:
        taskname: Dotted path of the function to run, e.g. 'loan.tasks.notify_loan_event'
        *args, **kwargs: Passed through to the task function

    Returns:
        bool: True if the task was handed over to the worker
    """
    try:
        from django_q.tasks import async_task

        task_id = async_task(taskname, *args, **kwargs)
    except Exception:
        log_error(f'offload_task:{taskname}')
        logger.exception('Failed to offload task', task=taskname)
        return False

    logger.debug('Offloaded task', task=taskname, task_id=task_id)
    return True
