#!/usr/bin/env python3
"""
Rule Loader - Load YAML matching rules from matching/rules directory
Loads rules in processing order and provides access to the static tables
(brands, quantity vocabulary, typos, plurals, categories, base synonyms)
"""

import os
import yaml
import hashlib
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_RULES_DIR = Path(__file__).parent / 'rules'


class RuleLoader:
    """Load and parse YAML rules from the matching rules directory"""

    def __init__(self, rules_dir: Optional[Path] = None, enable_hot_reload: Optional[bool] = None):
        """
        Initialize rule loader with rules directory

        Args:
            rules_dir: Path to rules directory (defaults to matching/rules)
            enable_hot_reload: Re-read rule files whose checksum changed.
                               Defaults to SHOPSTATION_RULES_HOT_RELOAD=1
        """
        if enable_hot_reload is None:
            enable_hot_reload = os.environ.get('SHOPSTATION_RULES_HOT_RELOAD', '0') == '1'

        self.rules_dir = Path(rules_dir) if rules_dir else DEFAULT_RULES_DIR
        self._rules_cache: Dict[str, Dict[str, Any]] = {}
        self._processing_order: List[str] = []
        self._enable_hot_reload = enable_hot_reload
        self._file_checksums: Optional[Dict[str, str]] = {} if enable_hot_reload else None
        # Bumped on every hot reload so consumers can rebuild their tables
        self.version = 0
        self._load_all_rules()

    def _calculate_file_checksum(self, file_path: Path) -> str:
        """Calculate MD5 checksum for a file"""
        try:
            with open(file_path, 'rb') as f:
                return hashlib.md5(f.read()).hexdigest()
        except OSError as e:
            logger.warning(f"Error calculating checksum for {file_path}: {e}")
            return ''

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """Load a YAML file directly"""
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error loading YAML file {file_path}: {e}")
            return {}

    def _load_all_rules(self) -> None:
        """Load all rule files from the rules directory"""
        if not self.rules_dir.exists():
            logger.error(f"Rules directory not found: {self.rules_dir}")
            return

        # Load meta.yaml first to get processing order
        meta_file = self.rules_dir / '00_meta.yaml'
        if meta_file.exists():
            meta_data = self._load_yaml_file(meta_file)
            self._rules_cache['meta'] = meta_data
            self._processing_order = list(meta_data.get('processing_order', []))
            logger.debug(f"Loaded 00_meta.yaml with {len(self._processing_order)} processing stages")
        else:
            logger.warning("00_meta.yaml not found, will load all numbered YAML files")

        for rule_file in sorted(self.rules_dir.glob('[0-9][0-9]_*.yaml')):
            if rule_file.name == '00_meta.yaml':
                continue
            self._load_rule_file(rule_file)

        logger.info(f"Loaded {len(self._rules_cache)} rule files from {self.rules_dir}")

    def _load_rule_file(self, rule_file: Path) -> None:
        filename = rule_file.name
        rule_data = self._load_yaml_file(rule_file)
        if self._enable_hot_reload:
            self._file_checksums[filename] = self._calculate_file_checksum(rule_file)
        if not rule_data:
            self._rules_cache.pop(filename, None)
            return
        self._rules_cache[filename] = rule_data
        if filename not in self._processing_order:
            self._processing_order.append(filename)
        logger.debug(f"Loaded rule file: {filename}")

    def _refresh(self, filename: str) -> None:
        """Reload a rule file if hot-reload is on and its checksum changed"""
        if not self._enable_hot_reload:
            return
        rule_file = self.rules_dir / filename
        if not rule_file.exists():
            return
        if self._calculate_file_checksum(rule_file) != self._file_checksums.get(filename):
            logger.debug(f"Rule file {filename} modified, reloading...")
            self._load_rule_file(rule_file)
            self.version += 1

    @property
    def hot_reload_enabled(self) -> bool:
        return self._enable_hot_reload

    def check_for_changes(self) -> int:
        """
        Re-read every modified rule file (hot-reload only)

        Returns:
            Current version; it changes whenever a file was reloaded
        """
        for filename in self.get_processing_order():
            self._refresh(filename)
        return self.version

    def get_meta(self) -> Dict[str, Any]:
        """Get meta information from 00_meta.yaml"""
        return self._rules_cache.get('meta', {})

    def get_processing_order(self) -> List[str]:
        """Get ordered list of rule files"""
        return self._processing_order.copy()

    def get_rule(self, filename: str) -> Optional[Dict[str, Any]]:
        """
        Get rule data for a specific file

        Args:
            filename: Name of the rule file (e.g., '30_typos.yaml')

        Returns:
            Dictionary containing rule data, or None if not found
        """
        self._refresh(filename)
        return self._rules_cache.get(filename)

    def get_section(self, section: str) -> Optional[Any]:
        """
        Get a top-level section from whichever rule file defines it

        Args:
            section: Section name (e.g., 'brands', 'typos', 'categories')
        """
        for filename in self._processing_order:
            rule_data = self.get_rule(filename) or {}
            if section in rule_data:
                return rule_data[section]
        return None

    def get_brands(self) -> List[str]:
        return [str(b).lower() for b in (self.get_section('brands') or [])]

    def get_quantity_units(self) -> List[str]:
        quantity = self.get_section('quantity') or {}
        return [str(u).lower() for u in quantity.get('units', [])]

    def get_quantity_words(self) -> List[str]:
        quantity = self.get_section('quantity') or {}
        return [str(w).lower() for w in quantity.get('words', [])]

    def get_typo_corrections(self) -> Dict[str, str]:
        return {str(k).lower(): str(v).lower() for k, v in (self.get_section('typos') or {}).items()}

    def get_plural_mappings(self) -> Dict[str, str]:
        return {str(k).lower(): str(v).lower() for k, v in (self.get_section('plurals') or {}).items()}

    def get_category_definitions(self) -> List[Dict[str, Any]]:
        """
        Get category definitions in file order (order decides first-match-wins)

        Returns:
            List of {'name': str, 'keywords': [str, ...]}
        """
        definitions = []
        for entry in self.get_section('categories') or []:
            name = entry.get('name')
            if not name:
                logger.warning(f"Skipping category without a name: {entry}")
                continue
            definitions.append({
                'name': str(name),
                'keywords': [str(k).lower() for k in entry.get('keywords', [])],
            })
        return definitions

    def get_base_synonyms(self) -> Dict[str, List[str]]:
        """Get canonical key -> synonym phrases, in file order"""
        return {
            str(key): [str(s) for s in (phrases or [])]
            for key, phrases in (self.get_section('synonyms') or {}).items()
        }
