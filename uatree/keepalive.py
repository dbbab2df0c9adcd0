# -*- coding: utf-8 -*-

"""
Latido (keep-alive) de una sesión OPC-UA. Un hilo en segundo plano consulta
periódicamente el estado del servidor y entrega el código de estado obtenido
a un callback, junto con la sesión a la que pertenece.
"""

import concurrent.futures
import logging
import threading

from opcua import ua
from opcua.ua.uaerrors import UaError, UaStatusCodeError

logger = logging.getLogger(__name__)

SERVER_STATE = ua.NodeId(ua.ObjectIds.Server_ServerStatus_State)
JOIN_TIMEOUT = 2.0


def probe(client):
    """Lee Server.ServerStatus.State y devuelve el StatusCode resultante"""
    rv = ua.ReadValueId()
    rv.NodeId = SERVER_STATE
    rv.AttributeId = ua.AttributeIds.Value

    params = ua.ReadParameters()
    params.NodesToRead = [rv]
    params.TimestampsToReturn = ua.TimestampsToReturn.Neither

    try:
        results = client.uaclient.read(params)
    except UaStatusCodeError as e:
        return ua.StatusCode(e.code)
    except concurrent.futures.TimeoutError:
        return ua.StatusCode(ua.StatusCodes.BadTimeout)
    except (UaError, OSError):
        return ua.StatusCode(ua.StatusCodes.BadNoCommunication)

    if not results:
        return ua.StatusCode(ua.StatusCodes.BadUnexpectedError)
    return results[0].StatusCode


class Heartbeat:
    """
    Invoca callback(session, status) cada `interval` segundos hasta que se
    llame a stop(). Los códigos buenos también se entregan; es el callback
    quien decide qué hacer con ellos.
    """

    def __init__(self, session, check, callback, interval):
        self.session = session
        self.check = check
        self.callback = callback
        self.interval = float(interval)
        self.shutdown = False

        self.alarm = threading.Event()
        self.thread = threading.Thread(target=self.run, name="uatree-keepalive")
        self.thread.daemon = True

    def start(self):
        self.thread.start()
        return self

    def run(self):
        while True:
            self.alarm.wait(self.interval)

            if self.shutdown:
                break

            status = self.check()

            try:
                self.callback(self.session, status)
            except Exception:
                logger.exception("Error en el callback de keep-alive")

    def stop(self, timeout=JOIN_TIMEOUT):
        """Detiene el hilo y espera a que termine, salvo si lo llama el propio hilo"""
        self.shutdown = True
        self.alarm.set()

        if self.thread.is_alive() and self.thread is not threading.current_thread():
            self.thread.join(timeout)
