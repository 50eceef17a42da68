"""Process orgsurvey background jobs (notification mails, summary rebuilds, restarts).

Usage:
  python scripts/run_rq_worker.py            # long-running worker on 'default'
  python scripts/run_rq_worker.py --burst    # drain the queue and exit
"""

import argparse
import sys
import os

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
  sys.path.insert(0, ROOT)

from orgsurvey import create_app
import redis
from rq import Worker, Queue


def parse_args(argv=None):
  parser = argparse.ArgumentParser(description='orgsurvey RQ worker')
  parser.add_argument('queues', nargs='*', default=['default'], help='queue names (default: default)')
  parser.add_argument('--burst', action='store_true', help='exit once the queues are empty')
  return parser.parse_args(argv)


def main(argv=None):
  args = parse_args(argv)
  app = create_app()
  redis_url = app.config.get('REDIS_URL')
  if not redis_url:
    app.logger.error('REDIS_URL is not set; jobs run inline and no worker is needed')
    return 1
  conn = redis.from_url(redis_url)
  # ジョブは current_app と db.session を使うのでアプリコンテキスト内で動かす
  with app.app_context():
    worker = Worker([Queue(name, connection=conn) for name in args.queues], connection=conn)
    app.logger.info('RQ worker on %s (pid %s, burst=%s)', ','.join(args.queues), os.getpid(), args.burst)
    worker.work(burst=args.burst, with_scheduler=not args.burst,
                logging_level=app.config.get('LOG_LEVEL', 'INFO'))
  return 0


if __name__ == '__main__':
  sys.exit(main())
