# -*- coding: utf-8 -*-

"""
Línea de comandos: exporta el árbol de nodos de un servidor OPC-UA a JSON
"""

import argparse
import logging

from . import config
from . import output
from .errors import ConfigError
from .machine import get_machine_tree


def parser():
    arguments = argparse.ArgumentParser(description="Exporta el árbol de nodos de un servidor OPC-UA")
    arguments.add_argument("-u", "--serverUrl", dest="url",
                           help="Endpoint del servidor de la máquina (opc.tcp://123.251.215.2:62541)")
    arguments.add_argument("-n", "--fileName", dest="name", default=output.DEFAULT_NAME,
                           help="Nombre del archivo generado (por defecto %(default)s)")
    return arguments


def setup_logging(level):
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("opcua").setLevel(logging.WARNING)


def main(argv=None):
    arguments = parser().parse_args(argv)

    if not arguments.url:
        print("❌ Falta el endpoint de la máquina!")
        return 0

    try:
        configuration = config.from_environment()
    except ConfigError as e:
        print(f"❌ Error: {e}")
        return 1

    setup_logging(configuration.log_level)

    print(f"🔍 Exportando el árbol de nodos de {arguments.url}")
    if get_machine_tree(arguments.url, arguments.name, configuration):
        print(f"✅ Archivo creado {output.path(arguments.name)}")
        return 0

    print("❌ Error, archivo no creado!")
    return 1
