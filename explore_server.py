#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Explorador de estructura del servidor OPC-UA
"""

import sys

from uatree import cli, output


def explore_node(record, level=0, max_level=3):
    """Imprime recursivamente un nodo exportado y sus hijos"""
    indent = "  " * level
    print(f"{indent}📁 {record.display_name} (BrowseName: {record.browse_name}, NodeId: {record.node_id})")

    # Solo imprimir hasta max_level para evitar demasiada salida
    if level < max_level:
        for child in record.children:
            explore_node(child, level + 1, max_level)


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]

    arguments = cli.parser().parse_args(argv)
    code = cli.main(argv)

    if code != 0 or not arguments.url:
        return code

    print("\n📂 Explorando Objects:")
    for record in output.load(output.path(arguments.name)):
        explore_node(record)

    return code


if __name__ == "__main__":
    sys.exit(main())
