"""
crudtrace CLI 진입점

프로젝트 루트에서 실행:
  python main.py [command] [options]

또는 설치 후:
  crudtrace [command] [options]
"""

import sys
from pathlib import Path

# 설치하지 않고 실행하는 경우 src 디렉터리를 Python 경로에 추가
src_dir = Path(__file__).parent / "src"
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

from crudtrace.cli.cli_controller import main  # noqa: E402

if __name__ == "__main__":
    main()
