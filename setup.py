"""Setup script for Rsync Backup."""

from setuptools import setup, find_packages

setup(
    name="rsync-backup",
    version="1.0.0",
    description="Schedule and monitor rsync backups from the menu bar or system tray",
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    author="Rsync Backup contributors",
    python_requires=">=3.10",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "watchdog>=3.0.0",
        "pystray>=0.19.0",
        "Pillow>=10.0.0",
        "psutil>=5.9.0",
        "json5>=0.9.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "rsync-backup=rsync_backup.__main__:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: MacOS X",
        "Intended Audience :: End Users/Desktop",
        "Operating System :: MacOS :: MacOS X",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Topic :: System :: Archiving :: Backup",
    ],
)
