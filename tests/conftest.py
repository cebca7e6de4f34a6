"""Pytest configuration and fixtures for pith tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Dict, Generator

import pytest


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to sample test project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def sample_rust_code() -> str:
    """Sample Rust code with a struct, impl blocks, enum, trait, alias and consts."""
    return '''use std::collections::HashMap;
use std::io::{self, Read};

/// A key-value store.
pub struct Store {
    pub name: String,
    entries: HashMap<String, String>,
}

impl Store {
    /// Create an empty store.
    pub fn new(name: String) -> Self {
        Store { name, entries: HashMap::new() }
    }

    pub async fn load(&mut self) -> io::Result<()> {
        Ok(())
    }

    fn secret(&self) -> usize {
        self.entries.len()
    }
}

impl Widget {
    pub fn render(&self) -> String {
        String::new()
    }
}

pub enum Mode {
    Fast,
    Slow(u32),
}

pub trait Backend {
    fn get(&self, key: &str) -> Option<String>;
    fn put(&mut self, key: String, value: String) {}
}

pub type Map = HashMap<String, String>;

pub const LIMIT: usize = 10;

fn helper() {}

pub(crate) fn internal() {}
'''


@pytest.fixture
def sample_go_code() -> str:
    """Sample Go code relying on capitalization for visibility."""
    return '''package server

import (
	"fmt"
	"net/http"
)

// Server handles requests.
type Server struct {
	Addr    string
	handler http.Handler
}

type Handler interface {
	Serve(w http.ResponseWriter) error
}

type ID string

const MaxConns = 100

var defaultPort int = 8080

// Start runs the server.
func (s *Server) Start() error {
	fmt.Println(s.Addr)
	return nil
}

func NewServer(addr string) *Server {
	return &Server{Addr: addr}
}

func helper() {}
'''


@pytest.fixture
def sample_python_code() -> str:
    """Sample Python code exercising the underscore naming convention."""
    return '''"""Sample module for testing."""

import os
import json as j
from typing import List, Optional
from pathlib import Path

MAX_SIZE = 1024
TIMEOUT: float = 2.5


def public_name(x: int) -> int:
    """Return x."""
    return x


def _protected_name():
    pass


def __private_name():
    pass


async def fetch(url: str) -> bytes:
    return b""


class Greeter:
    """Greets people."""

    def __init__(self, name):
        self.name = name

    def greet(self) -> str:
        return f"Hi {self.name}"

    def _helper(self):
        pass
'''


@pytest.fixture
def sample_typescript_code() -> str:
    """Sample TypeScript code with exports, a class and an arrow function."""
    return '''import { readFile } from "fs";
import * as path from "path";
import React, { useState, useEffect } from "react";

/** A user record. */
export interface User {
  id: number;
  name: string;
}

export type ID = string | number;

export enum Color {
  Red,
  Green = "green",
}

/** Greets a user. */
export function greet(user: User): string {
  return "hi " + user.name;
}

export async function load(id: ID): Promise<User> {
  return { id: 1, name: "x" };
}

export class Service {
  constructor(base: string) {}

  async fetch(id: number): Promise<User> {
    return { id, name: "" };
  }

  private reset(): void {}

  protected log(msg: string): void {}
}

export const handler = async (req: Request): Promise<Response> => {
  return new Response();
};

export const VERSION: string = "1.0";

function internal() {}
'''


@pytest.fixture
def sample_javascript_code() -> str:
    """Sample JavaScript code; read through the TypeScript grammar."""
    return '''import { h } from "preact";

export function render(node) {
  return h("div", null, node);
}

export class Widget {
  draw() {}
}

export const add = (a, b) => a + b;

function hidden() {}
'''


@pytest.fixture
def sample_sources(
    sample_rust_code: str,
    sample_go_code: str,
    sample_python_code: str,
    sample_typescript_code: str,
    sample_javascript_code: str,
) -> Dict[str, str]:
    """Relative path -> content for a small multi-language project."""
    return {
        "src/store.rs": sample_rust_code,
        "server/server.go": sample_go_code,
        "app/utils.py": sample_python_code,
        "web/user.ts": sample_typescript_code,
        "web/widget.js": sample_javascript_code,
        "README.md": "# Demo\n\nA small project used in tests.\n",
    }


@pytest.fixture
def project_dir(temp_dir: Path, sample_sources: Dict[str, str]) -> Path:
    """Write the multi-language sample project into a temporary directory."""
    root = temp_dir / "project"
    for rel, content in sample_sources.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root
