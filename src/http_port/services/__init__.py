"""Pipeline stages: decode → dispatch → encode → callback."""
