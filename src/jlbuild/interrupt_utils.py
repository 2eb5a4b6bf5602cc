"""Utilities for handling KeyboardInterrupt while a build tool is running.

A julia or gcc process may spawn helpers of its own, so an interrupt has to
take down the whole process tree, not just the direct child, before it is
propagated to the main thread.
"""

import _thread
import logging

import psutil


def terminate_process_tree(pid: int, timeout: float = 3.0) -> int:
    """Terminate a process and all of its descendants.

    Children are terminated before their parents. Processes still alive
    after `timeout` seconds are killed.

    Args:
        pid: PID of the root process
        timeout: Seconds to wait for graceful termination

    Returns:
        Number of processes signalled
    """
    try:
        root = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return 0

    try:
        processes = root.children(recursive=True)
    except psutil.NoSuchProcess:
        processes = []
    processes.append(root)

    signalled = []
    for proc in processes:
        try:
            proc.terminate()
            signalled.append(proc)
            logging.debug(f"Terminated process {proc.pid}")
        except psutil.NoSuchProcess:
            pass

    _gone, alive = psutil.wait_procs(signalled, timeout=timeout)
    for proc in alive:
        try:
            proc.kill()
            logging.warning(f"Force killed stubborn process {proc.pid}")
        except psutil.NoSuchProcess:
            pass

    return len(signalled)


def handle_keyboard_interrupt_properly(ke: KeyboardInterrupt) -> None:
    """Propagate a KeyboardInterrupt to the main thread and re-raise it.

    Usage:
        try:
            proc.communicate()
        except KeyboardInterrupt as ke:
            terminate_process_tree(proc.pid)
            handle_keyboard_interrupt_properly(ke)

    Raises:
        KeyboardInterrupt: Always
    """
    _thread.interrupt_main()
    raise ke
