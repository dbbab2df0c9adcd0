# -*- coding: utf-8 -*-

"""
Reconexión en segundo plano tras una caída de la comunicación
"""

import logging
import threading

from .errors import ConnectError
from .keepalive import JOIN_TIMEOUT

logger = logging.getLogger(__name__)


class ReconnectHandler:
    """
    Cada `period` segundos intenta abrir una sesión nueva con `open_session`
    hasta conseguirlo o hasta que se llame a dispose(). Al terminar invoca
    complete(handler) siempre; `session` queda con la sesión nueva, o None si
    no se produjo ninguna.
    """

    def __init__(self, previous, open_session, period, complete):
        self.previous = previous
        self.open_session = open_session
        self.period = float(period)
        self.complete = complete

        self.session = None
        self.attempts = 0
        self.disposed = False

        self.alarm = threading.Event()
        self.thread = threading.Thread(target=self.run, name="uatree-reconnect")
        self.thread.daemon = True

    def begin(self):
        self.thread.start()
        return self

    def run(self):
        while True:
            self.alarm.wait(self.period)

            if self.disposed:
                break

            self.attempts += 1
            try:
                self.session = self.open_session()
            except ConnectError as e:
                logger.info("Reconexión %d fallida, nuevo intento en %ss: %s", self.attempts, self.period, e)
                continue

            break

        self.complete(self)

    def dispose(self, timeout=JOIN_TIMEOUT):
        self.disposed = True
        self.alarm.set()

        if self.thread.is_alive() and self.thread is not threading.current_thread():
            self.thread.join(timeout)
