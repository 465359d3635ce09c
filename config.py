"""YUANDI 웹 애플리케이션 설정 모듈."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from yuandi.config import AppConfig, load_env


@dataclass
class YuandiConfig:
    """Flask 앱 실행에 필요한 설정 값을 묶는다."""

    secret_key: str
    admin_username: str
    admin_password: str
    project_root: Path
    app_config: AppConfig

    @property
    def data_dir(self) -> Path:
        return self.project_root / "data"

    @property
    def settings_file(self) -> Path:
        return self.data_dir / "settings.json"

    @property
    def staff_file(self) -> Path:
        return self.data_dir / "staff.json"

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> "YuandiConfig":
        """환경 변수와 data/settings.json 으로 설정을 만들고 data 디렉터리를 준비한다."""

        root = project_root or Path(__file__).resolve().parent
        (root / "data").mkdir(parents=True, exist_ok=True)

        app_config = load_env(root / "data" / "settings.json")
        return cls(
            secret_key=app_config.secret_key,
            admin_username=os.environ.get("YUANDI_ADMIN_USER", "admin"),
            admin_password=os.environ.get("YUANDI_ADMIN_PASS", "yuandi-admin"),
            project_root=root,
            app_config=app_config,
        )
