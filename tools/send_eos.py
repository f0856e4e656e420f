#!/usr/bin/env python3
"""Send an EOS-style string to the bridge, e.g. to check the vMix side without a console."""

import socket, sys

def main():
    addr  = sys.argv[1] if len(sys.argv) > 1 else "127.0.0.1"
    port  = int(sys.argv[2]) if len(sys.argv) > 2 else 5000
    text  = sys.argv[3] if len(sys.argv) > 3 else "SCN,0"

    # EOS terminates its strings with CRLF
    payload = (text + "\r\n").encode("ascii")

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.sendto(payload, (addr, port))
    finally:
        sock.close()
    print(f"sent {payload!r} -> {addr}:{port}")

if __name__ == "__main__":
    main()
