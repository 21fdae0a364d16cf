#!/usr/bin/env python3

# -----------------------------------------------------------------------------
# Copyright (c) 2025 Spectrum Virtualize Exporter (scaleoutSean@Github)
# Licensed under the MIT License. See LICENSE in project root for details.
# -----------------------------------------------------------------------------

"""
Entry point for the Spectrum Virtualize exporter.

Loads the authentication map and TLS settings once, then serves
/probe?target=... scrapes until interrupted.
"""

import argparse
import logging
import os
import ssl
import sys

from pydantic import ValidationError

from spectrum_exporter.config import ConfigError, Settings, load_auth_map, parse_listen
from spectrum_exporter.connection import build_transport
from spectrum_exporter.server import ExporterApp, serve

FORMAT = '%(asctime)s - %(levelname)s - %(funcName)s - %(lineno)d - %(message)s'


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Prometheus exporter for Spectrum Virtualize arrays")
    parser.add_argument('--auth-file', dest='auth_file', type=str, default=None,
        help='YAML file mapping "scheme://host[:port]" targets to user/password. Env: SPECTRUM_AUTH_FILE')
    parser.add_argument('--listen', type=str, default=None,
        help='Address to listen on, [host]:port. Default: :9747')
    parser.add_argument('--scrape-timeout', dest='scrape_timeout', type=float, default=None,
        help='Max seconds to allow a scrape to take. Default: 30')
    parser.add_argument('--insecure', action='store_true', default=False,
        help='Allow insecure certificates (disable all TLS validation, for testing only).')
    parser.add_argument('--extra-ca-cert', dest='extra_ca_cert', type=str, default=None,
        help='File containing extra PEMs to add to the CA trust store.')
    parser.add_argument('--logfile', type=str, default=None,
        help='Path to log file. If not provided, logs to console only.')
    parser.add_argument('--loglevel', type=str, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], default=None,
        help='Log level for both console and file output. Default: INFO')
    return parser.parse_args(argv)


def setup_logging(loglevel: str, logfile=None) -> None:
    log_level = getattr(logging, loglevel.upper())

    if logfile:
        logfile_dir = os.path.dirname(logfile) or '.'
        if os.path.exists(logfile_dir) and os.access(logfile_dir, os.W_OK):
            logging.basicConfig(filename=logfile, level=log_level,
                                format=FORMAT, datefmt='%Y-%m-%dT%H:%M:%SZ')
            logging.info('Logging to file: ' + logfile)
        else:
            logging.basicConfig(level=log_level, format=FORMAT,
                                datefmt='%Y-%m-%dT%H:%M:%SZ')
            logging.error(f'Logfile directory {logfile_dir} does not exist or is not writable')
            logging.warning('Falling back to console logging only')
    else:
        logging.basicConfig(level=log_level, format=FORMAT,
                            datefmt='%Y-%m-%dT%H:%M:%SZ')

    # Never allow requests/urllib3 to log below INFO, auth headers carry passwords
    requests_level = max(log_level, logging.INFO)
    logging.getLogger("requests").setLevel(level=requests_level)
    logging.getLogger("urllib3").setLevel(level=requests_level)


def main(argv=None):
    CMD = parse_args(argv)
    try:
        settings = Settings(CMD)
        settings.validate()
    except ValidationError as e:
        problems = "; ".join(f"SPECTRUM_{str(err['loc'][0]).upper()}: {err['msg']}" for err in e.errors())
        print(f"Error: invalid environment setting: {problems}", file=sys.stderr)
        sys.exit(1)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(settings.loglevel, settings.logfile)
    LOG = logging.getLogger(__name__)

    try:
        credentials = load_auth_map(settings.auth_file)
        transport = build_transport(extra_ca=settings.extra_ca_cert, insecure=settings.insecure)
    except ConfigError as e:
        LOG.critical(str(e))
        sys.exit(1)
    except ssl.SSLError as e:
        LOG.critical(f"Failed to append certs from PEM {settings.extra_ca_cert}: {e}")
        sys.exit(1)

    host, port = parse_listen(settings.listen)
    app = ExporterApp(credentials, transport, settings.scrape_timeout)
    try:
        serve(app, host, port)
    except KeyboardInterrupt:
        LOG.info("Interrupted, shutting down")
    finally:
        transport.close()


if __name__ == "__main__":
    main()
