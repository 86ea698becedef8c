# Copyright © 2015 STRG.AT GmbH, Vienna, Austria
#
# This file is part of the The SCORE Framework.
#
# The SCORE Framework and all its parts are free software: you can redistribute
# them and/or modify them under the terms of the GNU Lesser General Public
# License version 3 as published by the Free Software Foundation which is in the
# file named COPYING.LESSER.txt.
#
# The SCORE Framework and all its parts are distributed without any WARRANTY;
# without even the implied warranty of MERCHANTABILITY or FITNESS FOR A
# PARTICULAR PURPOSE. For more details see the GNU Lesser General Public
# License.
#
# If you have not received a copy of the GNU Lesser General Public License see
# http://www.gnu.org/licenses/.
#
# The License-Agreement realised between you as Licensee and STRG.AT GmbH as
# Licenser including the issue of its valid conclusion and its pre- and
# post-contractual effects is governed by the laws of Austria. Any disputes
# concerning this License-Agreement including the issue of its valid conclusion
# and its pre- and post-contractual effects are exclusively decided by the
# competent court, in whose district STRG.AT GmbH has its registered seat, at
# the discretion of STRG.AT GmbH also the competent court, in whose district the
# Licensee has his registered seat, an establishment or assets.

"""
This package determines the :term:`cachebuster`, the value appended to all
production asset URLs. Browsers and CDN edges will fetch a fresh copy of an
asset whenever this value changes, so it should change with every deployment.
"""
import logging
import subprocess
import time


log = logging.getLogger(__name__)


def default_cachebuster():
    """
    Returns the current time in milliseconds as a string.
    """
    return str(int(time.time() * 1000))


def git_revision(folder):
    """
    Returns the hash of the commit currently checked out in the git repository
    containing *folder*, or `None` if there is no such repository.
    """
    cmd = ['git', 'rev-parse', 'HEAD']
    try:
        result = subprocess.check_output(
            cmd, cwd=folder, stderr=subprocess.DEVNULL)
    except (OSError, subprocess.CalledProcessError):
        return None
    return str(result, 'ASCII').strip() or None


def discover_cachebuster(folder):
    """
    Provides the best available cachebuster for the static files in *folder*:
    the current git revision, if possible, a timestamp otherwise.
    """
    revision = git_revision(folder)
    if revision:
        return revision
    cachebuster = default_cachebuster()
    log.info('No git revision found in %s, using timestamp %s as cachebuster',
             folder, cachebuster)
    return cachebuster
