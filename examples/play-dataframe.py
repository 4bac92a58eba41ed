import pyarrow.compute as pc

from pywrangle.compute import FunctionCallExpression, case_when, min_rank
from pywrangle.course import datasets
from pywrangle.dataframe import Dataframe, col

df = Dataframe(datasets.sales()) \
  .left_join(Dataframe(datasets.sales()).distinct("product").rowid_to_column("product_id"), by="product") \
  .mutate(rank=min_rank("price", descending=True)) \
  .mutate(tier=case_when((FunctionCallExpression(pc.less_equal, col("rank"), 2), "top"), default="other")) \
  .arrange("rank") \
  .collect()

print(df)
